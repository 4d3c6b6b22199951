"""Create farmings table.

Revision ID: c3createfarmings
Revises: b2createpools
Create Date: 2025-07-06

"""

from alembic import op
import sqlalchemy as sa


revision = "c3createfarmings"
down_revision = "b2createpools"
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "farmings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("hash", sa.String(66), nullable=False),
        sa.Column("tvl", sa.Float(), nullable=True),
        # -1 marks a farming with no active TVL
        sa.Column("last_apr", sa.Float(), nullable=True),
        sa.Column("max_apr", sa.Float(), nullable=True),
        sa.Column("network_id", sa.Integer(), sa.ForeignKey("networks.id"), nullable=False),
        # Keep timestamps as the last columns
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.UniqueConstraint("network_id", "hash", name="uq_farmings_network_hash"),
    )

    op.create_index("ix_farmings_hash", "farmings", ["hash"], unique=True)
    op.create_index("ix_farmings_network_id", "farmings", ["network_id"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_farmings_network_id", table_name="farmings")
    op.drop_index("ix_farmings_hash", table_name="farmings")
    op.drop_table("farmings")
