from __future__ import annotations

import pytest

from tagcatalog.catalog.errors import InvalidInput
from tagcatalog.catalog.pagination import page_offset, paginate, validate_page_params


def test_paginate_first_page() -> None:
    window = paginate([1, 2, 3, 4, 5, 6, 7], page=1, page_size=3)
    assert window.items == [1, 2, 3]
    assert window.total == 7
    assert window.page == 1
    assert window.page_size == 3


def test_paginate_middle_and_partial_last_page() -> None:
    items = [10, 20, 30, 40, 50, 60, 70]
    assert paginate(items, page=2, page_size=3).items == [40, 50, 60]
    assert paginate(items, page=3, page_size=3).items == [70]


def test_paginate_past_the_end_keeps_total() -> None:
    window = paginate([1, 2, 3, 4, 5, 6, 7], page=5, page_size=3)
    assert window.items == []
    assert window.total == 7
    assert window.page == 5


def test_paginate_empty_sequence() -> None:
    window = paginate([], page=1, page_size=25)
    assert window.items == []
    assert window.total == 0


def test_paginate_defaults() -> None:
    window = paginate(list(range(1, 31)))
    assert window.page == 1
    assert window.page_size == 25
    assert window.items == list(range(1, 26))


def test_page_offset() -> None:
    assert page_offset(1, 25) == 0
    assert page_offset(3, 10) == 20


@pytest.mark.parametrize(
    ("page", "page_size", "param"),
    [
        (0, 10, "page"),
        (-1, 10, "page"),
        (True, 10, "page"),
        ("1", 10, "page"),
        (1, 0, "page_size"),
        (1, 2.5, "page_size"),
    ],
)
def test_validate_page_params_rejects(page: object, page_size: object, param: str) -> None:
    with pytest.raises(InvalidInput) as exc_info:
        validate_page_params(page, page_size)
    assert exc_info.value.param == param


def test_paginate_validates_before_slicing() -> None:
    with pytest.raises(InvalidInput):
        paginate([1, 2, 3], page=0, page_size=1)
