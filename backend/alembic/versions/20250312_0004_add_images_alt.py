from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "20250312_0004"
down_revision = "20250312_0003"
branch_labels = None
depends_on = None


def upgrade() -> None:
    with op.batch_alter_table("images") as batch:
        batch.add_column(sa.Column("alt", sa.Text(), nullable=False, server_default=sa.text("''")))


def downgrade() -> None:
    with op.batch_alter_table("images") as batch:
        batch.drop_column("alt")
