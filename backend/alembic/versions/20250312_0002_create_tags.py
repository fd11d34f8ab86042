from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "20250312_0002"
down_revision = "20250312_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "tags",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.UniqueConstraint("name", name="uq_tags_name"),
        sa.CheckConstraint("length(name) > 0", name="ck_tags_name_not_empty"),
    )


def downgrade() -> None:
    op.drop_table("tags")
