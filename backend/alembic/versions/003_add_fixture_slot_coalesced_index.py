"""add unique fixture slot index covering null event_id and phase

Revision ID: 003_fixture_slot_index
Revises: 002_fixture_phase
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "003_fixture_slot_index"
down_revision = "002_fixture_phase"
branch_labels = None
depends_on = None


def upgrade() -> None:
    # uq_fixture_scope_slot treats NULLs as distinct; this one does not
    op.create_index(
        "uq_fixture_slot_coalesced",
        "fixture",
        [
            sa.text("tournament_id"),
            sa.text("coalesce(event_id, 0)"),
            sa.text("coalesce(phase, '')"),
            sa.text("round"),
            sa.text("match_index"),
        ],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index("uq_fixture_slot_coalesced", table_name="fixture")
