"""Add order sync records.

Revision ID: 20261019_01
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "20261019_01"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


sync_status_enum = sa.Enum("unsynced", "partial", "synced", name="order_sync_status_enum")
match_method_enum = sa.Enum("email", "name", "manual", "none", name="order_sync_match_method_enum")


def upgrade() -> None:
    op.create_table(
        "order_sync_records",
        sa.Column("order_id", sa.String(length=64), primary_key=True),
        sa.Column("status", sync_status_enum, nullable=False),
        sa.Column("constituent_id", sa.String(length=64), nullable=True),
        sa.Column("match_method", match_method_enum, nullable=False, server_default="none"),
        sa.Column("matched_email", sa.String(length=320), nullable=True),
        sa.Column("payment_id", sa.String(length=64), nullable=True),
        sa.Column("constituent_response_raw", sa.Text(), nullable=True),
        sa.Column("payment_response_raw", sa.Text(), nullable=True),
        sa.Column("synced_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_order_sync_records_synced_at", "order_sync_records", ["synced_at"])


def downgrade() -> None:
    op.drop_index("ix_order_sync_records_synced_at", table_name="order_sync_records")
    op.drop_table("order_sync_records")
    match_method_enum.drop(op.get_bind(), checkfirst=True)
    sync_status_enum.drop(op.get_bind(), checkfirst=True)
