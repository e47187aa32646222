"""Create profiles and handles tables.

Revision ID: 002
Revises: 001
Create Date: 2024-03-02

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the profiles and handles tables."""
    op.create_table(
        "profiles",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column(
            "handle",
            sa.String(20),
            nullable=True,
            comment="Lowercase public handle; null until claimed",
        ),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("display_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("bio", sa.String(150), nullable=False, server_default=""),
        sa.Column(
            "photo_url",
            sa.Text(),
            nullable=True,
            comment="Reference to the stored profile photo",
        ),
        sa.Column(
            "photo_public_id",
            sa.String(255),
            nullable=True,
            comment="Blob store id of the photo, used for deletion",
        ),
        sa.Column(
            "theme",
            postgresql.JSONB(),
            nullable=True,
            comment="Theme preset document; null means default rendering",
        ),
        sa.Column(
            "provider",
            sa.String(50),
            nullable=False,
            comment="Identity provider: 'github' or 'google'",
        ),
        sa.Column(
            "provider_id",
            sa.String(255),
            nullable=False,
            comment="Subject id at the identity provider",
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
        sa.PrimaryKeyConstraint("id", name=op.f("pk_profiles")),
        sa.UniqueConstraint("handle", name=op.f("uq_profiles_handle")),
        sa.UniqueConstraint("email", name=op.f("uq_profiles_email")),
        sa.UniqueConstraint(
            "provider",
            "provider_id",
            name=op.f("uq_profiles_provider"),
        ),
        schema="tanlink",
    )

    op.create_table(
        "handles",
        sa.Column("handle", sa.String(20), nullable=False),
        sa.Column("profile_id", sa.UUID(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("handle", name=op.f("pk_handles")),
        sa.ForeignKeyConstraint(
            ["profile_id"],
            ["tanlink.profiles.id"],
            name=op.f("fk_handles_profile_id_profiles"),
            ondelete="CASCADE",
        ),
        schema="tanlink",
    )
    op.create_index(
        op.f("ix_handles_profile_id"),
        "handles",
        ["profile_id"],
        schema="tanlink",
    )


def downgrade() -> None:
    """Drop the profiles and handles tables."""
    op.drop_index(op.f("ix_handles_profile_id"), table_name="handles", schema="tanlink")
    op.drop_table("handles", schema="tanlink")
    op.drop_table("profiles", schema="tanlink")
