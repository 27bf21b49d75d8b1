"""add fixture phase, event match_type and the fixture slot constraint

Revision ID: 002_fixture_phase
Revises: 001_initial
Create Date: 2026-10-08 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "002_fixture_phase"
down_revision = "001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Existing rows keep phase NULL and are treated as round robin
    op.add_column("fixture", sa.Column("phase", sa.String(), nullable=True))
    op.add_column("event", sa.Column("match_type", sa.String(), nullable=True))
    with op.batch_alter_table("fixture") as batch_op:
        batch_op.create_unique_constraint(
            "uq_fixture_scope_slot", ["tournament_id", "event_id", "phase", "round", "match_index"]
        )


def downgrade() -> None:
    with op.batch_alter_table("fixture") as batch_op:
        batch_op.drop_constraint("uq_fixture_scope_slot", type_="unique")
    op.drop_column("event", "match_type")
    op.drop_column("fixture", "phase")
