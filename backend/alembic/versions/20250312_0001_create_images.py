from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "20250312_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "images",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("src", sa.Text(), nullable=False),
        sa.Column("width", sa.Integer(), nullable=False),
        sa.Column("height", sa.Integer(), nullable=False),
        sa.UniqueConstraint("src", name="uq_images_src"),
        sa.CheckConstraint("width > 0 AND height > 0", name="ck_images_size"),
    )


def downgrade() -> None:
    op.drop_table("images")
