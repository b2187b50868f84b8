"""Add period and actual start/end time to livematch

Revision ID: 002_match_timing
Revises: 001_initial
Create Date: 2026-10-19 12:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy import inspect

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002_match_timing"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

NEW_COLUMNS = (
    ("current_period", sa.Integer()),
    ("actual_start_time", sa.DateTime()),
    ("actual_end_time", sa.DateTime()),
)


def upgrade() -> None:
    bind = op.get_bind()
    inspector = inspect(bind)
    existing = [col["name"] for col in inspector.get_columns("livematch")]

    with op.batch_alter_table("livematch") as batch_op:
        for name, column_type in NEW_COLUMNS:
            if name not in existing:
                batch_op.add_column(sa.Column(name, column_type, nullable=True))


def downgrade() -> None:
    with op.batch_alter_table("livematch") as batch_op:
        for name, _ in reversed(NEW_COLUMNS):
            batch_op.drop_column(name)
