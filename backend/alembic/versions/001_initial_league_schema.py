"""Initial league schema: league, division, player, registration, match, game, disputedscore

Revision ID: 001_initial_league_schema
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial_league_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "league",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("game_type", sa.String(), nullable=False),
        sa.Column("ranking_method", sa.String(), nullable=False),
        sa.Column("points_to_win", sa.Integer(), nullable=False, server_default="11"),
        sa.Column("win_by_two", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("match_duration_minutes", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("play_start_time", sa.Time(), nullable=False),
        sa.Column("play_end_time", sa.Time(), nullable=False),
        sa.Column("registration_opens", sa.DateTime(), nullable=True),
        sa.Column("registration_closes", sa.DateTime(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("schedule_generated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "division",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("league_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["league_id"], ["league.id"]),
        sa.UniqueConstraint("league_id", "name", name="uq_league_division_name"),
    )
    op.create_index("ix_division_league_id", "division", ["league_id"])

    op.create_table(
        "player",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_player_email", "player", ["email"])

    op.create_table(
        "registration",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("league_id", sa.Integer(), nullable=False),
        sa.Column("division_id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["league_id"], ["league.id"]),
        sa.ForeignKeyConstraint(["division_id"], ["division.id"]),
        sa.ForeignKeyConstraint(["player_id"], ["player.id"]),
        sa.UniqueConstraint("league_id", "player_id", name="uq_registration_league_player"),
    )
    op.create_index("ix_registration_league_id", "registration", ["league_id"])
    op.create_index("ix_registration_division_id", "registration", ["division_id"])
    op.create_index("ix_registration_player_id", "registration", ["player_id"])

    op.create_table(
        "match",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("league_id", sa.Integer(), nullable=False),
        sa.Column("division_id", sa.Integer(), nullable=False),
        sa.Column("player1_id", sa.Integer(), nullable=False),
        sa.Column("player2_id", sa.Integer(), nullable=False),
        sa.Column("player3_id", sa.Integer(), nullable=True),
        sa.Column("player4_id", sa.Integer(), nullable=True),
        sa.Column("court_number", sa.Integer(), nullable=True),
        sa.Column("scheduled_time", sa.DateTime(), nullable=True),
        sa.Column("week_number", sa.Integer(), nullable=False),
        sa.Column("is_makeup", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("player1_confirmed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("player2_confirmed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("winner_id", sa.Integer(), nullable=True),
        sa.Column("score_reported_by", sa.Integer(), nullable=True),
        sa.Column("score_reported_at", sa.DateTime(), nullable=True),
        sa.Column("score_disputed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("dispute_reason", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["league_id"], ["league.id"]),
        sa.ForeignKeyConstraint(["division_id"], ["division.id"]),
        sa.ForeignKeyConstraint(["player1_id"], ["player.id"]),
        sa.ForeignKeyConstraint(["player2_id"], ["player.id"]),
        sa.ForeignKeyConstraint(["player3_id"], ["player.id"]),
        sa.ForeignKeyConstraint(["player4_id"], ["player.id"]),
        sa.ForeignKeyConstraint(["winner_id"], ["player.id"]),
        sa.ForeignKeyConstraint(["score_reported_by"], ["player.id"]),
    )
    op.create_index("ix_match_league_id", "match", ["league_id"])
    op.create_index("ix_match_division_id", "match", ["division_id"])

    op.create_table(
        "game",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("match_id", sa.Integer(), nullable=False),
        sa.Column("game_number", sa.Integer(), nullable=False),
        sa.Column("player1_score", sa.Integer(), nullable=False),
        sa.Column("player2_score", sa.Integer(), nullable=False),
        sa.Column("player3_score", sa.Integer(), nullable=True),
        sa.Column("winner_id", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["match_id"], ["match.id"]),
        sa.ForeignKeyConstraint(["winner_id"], ["player.id"]),
        sa.UniqueConstraint("match_id", "game_number", name="uq_game_match_number"),
    )
    op.create_index("ix_game_match_id", "game", ["match_id"])

    # Append-only audit of contested reports
    op.create_table(
        "disputedscore",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("match_id", sa.Integer(), nullable=False),
        sa.Column("game_number", sa.Integer(), nullable=False),
        sa.Column("player1_score", sa.Integer(), nullable=False),
        sa.Column("player2_score", sa.Integer(), nullable=False),
        sa.Column("player3_score", sa.Integer(), nullable=True),
        sa.Column("reported_by", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["match_id"], ["match.id"]),
        sa.ForeignKeyConstraint(["reported_by"], ["player.id"]),
    )
    op.create_index("ix_disputedscore_match_id", "disputedscore", ["match_id"])


def downgrade() -> None:
    op.drop_index("ix_disputedscore_match_id", table_name="disputedscore")
    op.drop_table("disputedscore")
    op.drop_index("ix_game_match_id", table_name="game")
    op.drop_table("game")
    op.drop_index("ix_match_division_id", table_name="match")
    op.drop_index("ix_match_league_id", table_name="match")
    op.drop_table("match")
    op.drop_index("ix_registration_player_id", table_name="registration")
    op.drop_index("ix_registration_division_id", table_name="registration")
    op.drop_index("ix_registration_league_id", table_name="registration")
    op.drop_table("registration")
    op.drop_index("ix_player_email", table_name="player")
    op.drop_table("player")
    op.drop_index("ix_division_league_id", table_name="division")
    op.drop_table("division")
    op.drop_table("league")
