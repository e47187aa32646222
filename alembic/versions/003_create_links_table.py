"""Create links table.

Revision ID: 003
Revises: 002
Create Date: 2024-03-02

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the links table."""
    op.create_table(
        "links",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column("profile_id", sa.UUID(), nullable=False),
        sa.Column(
            "platform",
            sa.String(20),
            nullable=False,
            comment="Platform key, e.g. 'instagram' or 'website'",
        ),
        sa.Column("title", sa.String(255), nullable=False, server_default=""),
        sa.Column(
            "url",
            sa.Text(),
            nullable=False,
            comment="Normalized, schemed URL",
        ),
        sa.Column(
            "order",
            sa.Integer(),
            nullable=False,
            comment="Position on the profile page, contiguous from 0",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_links")),
        sa.ForeignKeyConstraint(
            ["profile_id"],
            ["tanlink.profiles.id"],
            name=op.f("fk_links_profile_id_profiles"),
            ondelete="CASCADE",
        ),
        schema="tanlink",
    )
    op.create_index(
        "ix_links_profile_id_order",
        "links",
        ["profile_id", "order"],
        schema="tanlink",
    )


def downgrade() -> None:
    """Drop the links table."""
    op.drop_index("ix_links_profile_id_order", table_name="links", schema="tanlink")
    op.drop_table("links", schema="tanlink")
