"""Create tanlink schema.

Revision ID: 001
Revises:
Create Date: 2024-03-02

"""
from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the tanlink schema."""
    op.execute("CREATE SCHEMA IF NOT EXISTS tanlink")


def downgrade() -> None:
    """Drop the tanlink schema."""
    op.execute("DROP SCHEMA IF EXISTS tanlink CASCADE")
