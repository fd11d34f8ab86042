from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from tagcatalog.db.models.base import Base


class Image(Base):
    __tablename__ = "images"
    __table_args__ = (
        sa.UniqueConstraint("src", name="uq_images_src"),
        sa.CheckConstraint("width > 0 AND height > 0", name="ck_images_size"),
    )

    id: Mapped[int] = mapped_column(sa.Integer(), primary_key=True, autoincrement=True)
    src: Mapped[str] = mapped_column(sa.Text(), nullable=False)
    alt: Mapped[str] = mapped_column(sa.Text(), nullable=False, server_default=sa.text("''"))
    width: Mapped[int] = mapped_column(sa.Integer(), nullable=False)
    height: Mapped[int] = mapped_column(sa.Integer(), nullable=False)
