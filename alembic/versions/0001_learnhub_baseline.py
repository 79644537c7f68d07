"""learnhub baseline schema

Revision ID: 0001_learnhub_baseline
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
from sqlalchemy.engine import Connection

from learnhub.database import Base
from learnhub import models  # noqa: F401

# revision identifiers, used by Alembic.
revision: str = "0001_learnhub_baseline"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Users, schools, the course tree, games, enrollment/progress and the append-only logs."""
    bind: Connection = op.get_bind()
    Base.metadata.create_all(bind)


def downgrade() -> None:
    bind: Connection = op.get_bind()
    Base.metadata.drop_all(bind)
