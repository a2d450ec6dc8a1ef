"""Add member renewal tracking.

Revision ID: 20261019_02
Revises: 20261019_01
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "20261019_02"
down_revision: Union[str, None] = "20261019_01"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "member_renewals",
        sa.Column("member_id", sa.String(length=64), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("first_name", sa.String(length=120), nullable=True),
        sa.Column("renewal_date", sa.Date(), nullable=True),
        sa.Column("last_reminder_interval_sent", sa.Integer(), nullable=True),
        sa.Column("last_reminder_cycle_date", sa.Date(), nullable=True),
        sa.Column("last_reminder_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deactivated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_member_renewals_renewal_date", "member_renewals", ["renewal_date"])


def downgrade() -> None:
    op.drop_index("ix_member_renewals_renewal_date", table_name="member_renewals")
    op.drop_table("member_renewals")
