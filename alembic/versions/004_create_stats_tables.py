"""Create view, click and bucket stats tables.

Revision ID: 004
Revises: 003
Create Date: 2024-03-09

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the stats tables."""
    op.create_table(
        "view_stats",
        sa.Column("profile_id", sa.UUID(), nullable=False),
        sa.Column("total_views", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("last_viewed_at", sa.DateTime(), nullable=True),
        sa.Column(
            "last_visitor_at",
            sa.DateTime(),
            nullable=True,
            comment="Denormalized snapshot of the latest visit, display only",
        ),
        sa.Column("last_visitor_handle", sa.String(20), nullable=True),
        sa.PrimaryKeyConstraint("profile_id", name=op.f("pk_view_stats")),
        sa.ForeignKeyConstraint(
            ["profile_id"],
            ["tanlink.profiles.id"],
            name=op.f("fk_view_stats_profile_id_profiles"),
            ondelete="CASCADE",
        ),
        schema="tanlink",
    )

    op.create_table(
        "click_stats",
        sa.Column("link_id", sa.UUID(), nullable=False),
        sa.Column("profile_id", sa.UUID(), nullable=False),
        sa.Column("total_clicks", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("last_clicked_at", sa.DateTime(), nullable=True),
        sa.Column("platform", sa.String(20), nullable=True),
        sa.Column("url", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("link_id", name=op.f("pk_click_stats")),
        sa.ForeignKeyConstraint(
            ["link_id"],
            ["tanlink.links.id"],
            name=op.f("fk_click_stats_link_id_links"),
            ondelete="CASCADE",
        ),
        schema="tanlink",
    )
    op.create_index(
        op.f("ix_click_stats_profile_id"),
        "click_stats",
        ["profile_id"],
        schema="tanlink",
    )

    op.create_table(
        "stat_buckets",
        sa.Column(
            "subject_type",
            sa.String(10),
            nullable=False,
            comment="'view' (keyed by profile) or 'click' (keyed by link)",
        ),
        sa.Column("subject_id", sa.UUID(), nullable=False),
        sa.Column("period", sa.String(10), nullable=False, comment="'day' or 'month'"),
        sa.Column(
            "bucket",
            sa.String(10),
            nullable=False,
            comment="YYYY-MM-DD for days, YYYY-MM for months",
        ),
        sa.Column("count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.PrimaryKeyConstraint(
            "subject_type",
            "subject_id",
            "period",
            "bucket",
            name=op.f("pk_stat_buckets"),
        ),
        schema="tanlink",
    )


def downgrade() -> None:
    """Drop the stats tables."""
    op.drop_table("stat_buckets", schema="tanlink")
    op.drop_index(op.f("ix_click_stats_profile_id"), table_name="click_stats", schema="tanlink")
    op.drop_table("click_stats", schema="tanlink")
    op.drop_table("view_stats", schema="tanlink")
