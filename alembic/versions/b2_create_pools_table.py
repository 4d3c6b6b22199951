"""Create pools table.

Revision ID: b2createpools
Revises: a1createnetworks
Create Date: 2025-07-06

"""

from alembic import op
import sqlalchemy as sa


revision = "b2createpools"
down_revision = "a1createnetworks"
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "pools",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("address", sa.String(42), nullable=False),
        sa.Column("last_apr", sa.Float(), nullable=True),
        sa.Column("max_apr", sa.Float(), nullable=True),
        sa.Column("network_id", sa.Integer(), sa.ForeignKey("networks.id"), nullable=False),
        # Keep timestamps as the last columns
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.UniqueConstraint("network_id", "address", name="uq_pools_network_address"),
    )

    op.create_index("ix_pools_network_id", "pools", ["network_id"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_pools_network_id", table_name="pools")
    op.drop_table("pools")
