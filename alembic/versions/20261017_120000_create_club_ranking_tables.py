"""Create users, matches and match_players tables

Revision ID: 5a1c0e7d2b94
Revises:
Create Date: 2026-10-17 12:00:00.000000+00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# Revision identifiers, used by Alembic.
revision: str = "5a1c0e7d2b94"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("initials", sa.String(length=10), nullable=False),
        sa.Column("elo", sa.Integer(), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "matches",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("number_of_sets", sa.Integer(), nullable=False),
        sa.Column(
            "is_finished",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column("news", sa.Text(), nullable=True),
        sa.Column("extra_info_1", sa.Text(), nullable=True),
        sa.Column("extra_info_2", sa.Text(), nullable=True),
        sa.Column("date", sa.DateTime(), nullable=True),
        sa.Column("rating_applied_at", sa.DateTime(), nullable=True),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_matches_finished_date", "matches", ["is_finished", "date"], unique=False
    )

    op.create_table(
        "match_players",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("match_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column(
            "is_winner",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.ForeignKeyConstraint(["match_id"], ["matches.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("match_id", "user_id", name="uq_match_players_match_user"),
    )
    op.create_index("idx_match_players_user", "match_players", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("idx_match_players_user", table_name="match_players")
    op.drop_table("match_players")
    op.drop_index("idx_matches_finished_date", table_name="matches")
    op.drop_table("matches")
    op.drop_table("users")
