"""Candidate selection for the tagged-image query.

Two paths produce the ordered candidate id list for one query call:

* the intersection filter, for a non-empty set of required tag ids, keeps the
  images associated with every required tag (``GROUP BY image_id HAVING
  COUNT(DISTINCT tag_id) = N``);
* the untagged fallback, for an empty set, keeps the images that have no row
  at all in ``image_tags`` (anti-join).

Both order candidates by ascending image id.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import sqlalchemy as sa
from sqlalchemy import distinct, func, select

from tagcatalog.catalog.errors import InvalidInput
from tagcatalog.catalog.types import AssociationRow
from tagcatalog.db.models.image_tags import ImageTag
from tagcatalog.db.models.images import Image


def is_positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_tag_ids(tag_ids: Iterable[object] | None, *, allow_empty: bool = True) -> list[int]:
    """Return ``tag_ids`` as a list, rejecting non-positive, non-int and repeated ids.

    Duplicates are an error rather than being dropped silently: the
    intersection compares group sizes against ``len(tag_ids)``, so callers
    de-duplicate user input before it reaches this point.
    """
    if tag_ids is None:
        values: list[object] = []
    elif isinstance(tag_ids, (str, bytes)):
        raise InvalidInput("tag_ids", "must be a sequence of integers", value=tag_ids)
    else:
        values = list(tag_ids)

    out: list[int] = []
    seen: set[int] = set()
    for raw in values:
        if not is_positive_int(raw):
            raise InvalidInput("tag_ids", "each tag id must be a positive integer", value=raw)
        tag_id = int(raw)  # type: ignore[arg-type]
        if tag_id in seen:
            raise InvalidInput("tag_ids", "duplicate tag id", value=tag_id)
        seen.add(tag_id)
        out.append(tag_id)

    if not out and not allow_empty:
        raise InvalidInput("tag_ids", "at least one tag id is required", value=[])
    return out


def build_intersection_query(tag_ids: Sequence[int]) -> sa.Select:
    ids = validate_tag_ids(tag_ids, allow_empty=False)
    return (
        select(ImageTag.image_id)
        .where(ImageTag.tag_id.in_(ids))
        .group_by(ImageTag.image_id)
        .having(func.count(distinct(ImageTag.tag_id)) == len(ids))
        .order_by(ImageTag.image_id.asc())
    )


def build_tag_count_query(tag_ids: Sequence[int]) -> sa.Select:
    """Per-image count of how many of ``tag_ids`` each image carries.

    Summed over disjoint slices of the required tags, this reproduces the
    intersection when the id list is too long for one statement.
    """
    ids = validate_tag_ids(tag_ids, allow_empty=False)
    return (
        select(ImageTag.image_id, func.count(distinct(ImageTag.tag_id)))
        .where(ImageTag.tag_id.in_(ids))
        .group_by(ImageTag.image_id)
    )


def build_untagged_query() -> sa.Select:
    has_association = select(ImageTag.image_id).where(ImageTag.image_id == Image.id).exists()
    return select(Image.id).where(~has_association).order_by(Image.id.asc())


def intersect_image_ids(rows: Iterable[AssociationRow], tag_ids: Sequence[int]) -> list[int]:
    """In-memory counterpart of :func:`build_intersection_query`."""
    ids = validate_tag_ids(tag_ids, allow_empty=False)
    required = set(ids)

    tags_by_image: dict[int, set[int]] = {}
    for row in rows:
        if row.tag_id in required:
            tags_by_image.setdefault(int(row.image_id), set()).add(int(row.tag_id))

    return sorted(image_id for image_id, found in tags_by_image.items() if len(found) == len(required))


def untagged_image_ids(image_ids: Iterable[int], rows: Iterable[AssociationRow]) -> list[int]:
    """In-memory counterpart of :func:`build_untagged_query`."""
    tagged = {int(row.image_id) for row in rows}
    return sorted({int(i) for i in image_ids} - tagged)
