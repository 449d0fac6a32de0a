"""Alert status, bot name and P&L; strategies table.

Revision ID: 20261020000000
Revises: 20261019000000
Create Date: 2026-10-20

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "20261020000000"
down_revision: Union[str, None] = "20261019000000"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table("alerts") as batch:
        batch.add_column(sa.Column("bot_name", sa.String(length=100), nullable=False, server_default=""))
        batch.add_column(sa.Column("pnl", sa.String(length=32), nullable=True))
        batch.add_column(sa.Column("status", sa.String(length=16), nullable=False, server_default="ACTIVE"))
        batch.create_index(op.f("ix_alerts_status"), ["status"], unique=False)

    op.create_table(
        "strategies",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("symbol", sa.String(length=32), nullable=False),
        sa.Column("timeframe", sa.String(length=16), nullable=False),
        sa.Column("script", sa.Text(), nullable=False),
        sa.Column("levels", sa.JSON().with_variant(postgresql.JSONB(), "postgresql"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(
            ["created_by"],
            ["accounts.id"],
            name=op.f("fk_strategies_created_by_accounts"),
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_strategies")),
    )
    op.create_index(op.f("ix_strategies_symbol"), "strategies", ["symbol"], unique=False)
    op.create_index(op.f("ix_strategies_is_active"), "strategies", ["is_active"], unique=False)
    op.create_index(op.f("ix_strategies_created_at"), "strategies", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_strategies_created_at"), table_name="strategies")
    op.drop_index(op.f("ix_strategies_is_active"), table_name="strategies")
    op.drop_index(op.f("ix_strategies_symbol"), table_name="strategies")
    op.drop_table("strategies")
    with op.batch_alter_table("alerts") as batch:
        batch.drop_index(op.f("ix_alerts_status"))
        batch.drop_column("status")
        batch.drop_column("pnl")
        batch.drop_column("bot_name")
