from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from tagcatalog.db.models.base import Base


class Tag(Base):
    __tablename__ = "tags"
    __table_args__ = (
        sa.UniqueConstraint("name", name="uq_tags_name"),
        sa.CheckConstraint("length(name) > 0", name="ck_tags_name_not_empty"),
    )

    id: Mapped[int] = mapped_column(sa.Integer(), primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(sa.Text(), nullable=False)
