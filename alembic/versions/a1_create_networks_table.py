"""Create networks table.

Revision ID: a1createnetworks
Revises:
Create Date: 2025-07-06

"""

from alembic import op
import sqlalchemy as sa


revision = "a1createnetworks"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "networks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("analytics_subgraph_url", sa.Text(), nullable=False),
        sa.Column("farming_subgraph_url", sa.Text(), nullable=False),
        sa.Column("api_key", sa.String(255), nullable=True),
        # Keep timestamps as the last columns
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.UniqueConstraint("title", name="uq_networks_title"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("networks")
