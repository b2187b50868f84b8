"""Initial schema: formats, templates, tournaments, teams, blocks, matches, overrides

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "tournamentgroup",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("organizer", sa.String(), nullable=True),
        sa.Column("venue", sa.String(), nullable=True),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "tournamentformat",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("team_count", sa.Integer(), nullable=False),
        sa.Column("preliminary_format_type", sa.String(), nullable=False),
        sa.Column("final_format_type", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "matchtemplate",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("format_id", sa.Integer(), nullable=False),
        sa.Column("match_number", sa.Integer(), nullable=False),
        sa.Column("match_code", sa.String(), nullable=False),
        sa.Column("match_type", sa.String(), nullable=False),
        sa.Column("phase", sa.String(), nullable=False),
        sa.Column("round_name", sa.String(), nullable=True),
        sa.Column("block_name", sa.String(), nullable=True),
        sa.Column("team1_source", sa.String(), nullable=True),
        sa.Column("team2_source", sa.String(), nullable=True),
        sa.Column("team1_display_name", sa.String(), nullable=False),
        sa.Column("team2_display_name", sa.String(), nullable=False),
        sa.Column("day_number", sa.Integer(), nullable=False),
        sa.Column("execution_priority", sa.Integer(), nullable=False),
        sa.Column("court_number", sa.Integer(), nullable=True),
        sa.Column("suggested_start_time", sa.String(), nullable=True),
        sa.Column("is_bye_match", sa.Boolean(), nullable=False),
        sa.Column("winner_position", sa.Integer(), nullable=True),
        sa.Column("loser_position_start", sa.Integer(), nullable=True),
        sa.Column("loser_position_end", sa.Integer(), nullable=True),
        sa.Column("position_note", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["format_id"], ["tournamentformat.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("format_id", "match_code", name="uq_template_format_code"),
    )

    op.create_table(
        "tournament",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("group_id", sa.Integer(), nullable=True),
        sa.Column("format_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("venue", sa.String(), nullable=True),
        sa.Column("team_count", sa.Integer(), nullable=False),
        sa.Column("court_count", sa.Integer(), nullable=False),
        sa.Column("match_duration_minutes", sa.Integer(), nullable=False),
        sa.Column("break_duration_minutes", sa.Integer(), nullable=False),
        sa.Column("event_start_date", sa.Date(), nullable=False),
        sa.Column("event_end_date", sa.Date(), nullable=False),
        sa.Column("recruitment_start_date", sa.Date(), nullable=True),
        sa.Column("recruitment_end_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("is_public", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["group_id"], ["tournamentgroup.id"]),
        sa.ForeignKeyConstraint(["format_id"], ["tournamentformat.id"]),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "tournamentrule",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("phase", sa.String(), nullable=False),
        sa.Column("use_extra_time", sa.Boolean(), nullable=False),
        sa.Column("use_penalty", sa.Boolean(), nullable=False),
        sa.Column("win_points", sa.Integer(), nullable=False),
        sa.Column("draw_points", sa.Integer(), nullable=False),
        sa.Column("loss_points", sa.Integer(), nullable=False),
        sa.Column("walkover_winner_goals", sa.Integer(), nullable=False),
        sa.Column("walkover_loser_goals", sa.Integer(), nullable=False),
        sa.Column("tie_breaking_rules", sa.JSON(), nullable=True),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tournament_id", "phase", name="uq_rule_tournament_phase"),
    )

    op.create_table(
        "team",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("omission", sa.String(), nullable=True),
        sa.Column("contact_person", sa.String(), nullable=True),
        sa.Column("contact_email", sa.String(), nullable=True),
        sa.Column("contact_phone", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "player",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("team_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("jersey_number", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["team_id"], ["team.id"]),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "tournamentteam",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("team_id", sa.Integer(), nullable=False),
        sa.Column("team_name", sa.String(), nullable=False),
        sa.Column("team_omission", sa.String(), nullable=True),
        sa.Column("assigned_block", sa.String(), nullable=True),
        sa.Column("block_position", sa.Integer(), nullable=True),
        sa.Column("withdrawal_status", sa.String(), nullable=False),
        sa.Column("withdrawal_reason", sa.String(), nullable=True),
        sa.Column("withdrawal_requested_at", sa.DateTime(), nullable=True),
        sa.Column("withdrawal_processed_at", sa.DateTime(), nullable=True),
        sa.Column("withdrawal_processed_by", sa.String(), nullable=True),
        sa.Column("withdrawal_admin_comment", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.ForeignKeyConstraint(["team_id"], ["team.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tournament_id", "team_name", name="uq_entry_tournament_name"),
    )

    op.create_table(
        "tournamentplayer",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("tournament_team_id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("jersey_number", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.ForeignKeyConstraint(["tournament_team_id"], ["tournamentteam.id"]),
        sa.ForeignKeyConstraint(["player_id"], ["player.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tournament_team_id", "player_id", name="uq_entry_player"),
    )

    op.create_table(
        "matchblock",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("phase", sa.String(), nullable=False),
        sa.Column("block_name", sa.String(), nullable=False),
        sa.Column("display_round_name", sa.String(), nullable=True),
        sa.Column("block_order", sa.Integer(), nullable=False),
        sa.Column("team_rankings", sa.JSON(), nullable=True),
        sa.Column("remarks", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tournament_id", "phase", "block_name", name="uq_block_name"),
    )

    op.create_table(
        "livematch",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("match_block_id", sa.Integer(), nullable=False),
        sa.Column("match_number", sa.Integer(), nullable=False),
        sa.Column("match_code", sa.String(), nullable=False),
        sa.Column("tournament_date", sa.Date(), nullable=True),
        sa.Column("court_number", sa.Integer(), nullable=True),
        sa.Column("start_time", sa.String(), nullable=True),
        sa.Column("team1_tournament_team_id", sa.Integer(), nullable=True),
        sa.Column("team2_tournament_team_id", sa.Integer(), nullable=True),
        sa.Column("team1_display_name", sa.String(), nullable=False),
        sa.Column("team2_display_name", sa.String(), nullable=False),
        sa.Column("team1_scores", sa.String(), nullable=True),
        sa.Column("team2_scores", sa.String(), nullable=True),
        sa.Column("winner_tournament_team_id", sa.Integer(), nullable=True),
        sa.Column("is_draw", sa.Boolean(), nullable=False),
        sa.Column("is_walkover", sa.Boolean(), nullable=False),
        sa.Column("match_status", sa.String(), nullable=False),
        sa.Column("cancellation_type", sa.String(), nullable=True),
        sa.Column("remarks", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.ForeignKeyConstraint(["match_block_id"], ["matchblock.id"]),
        sa.ForeignKeyConstraint(["team1_tournament_team_id"], ["tournamentteam.id"]),
        sa.ForeignKeyConstraint(["team2_tournament_team_id"], ["tournamentteam.id"]),
        sa.ForeignKeyConstraint(["winner_tournament_team_id"], ["tournamentteam.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tournament_id", "match_code", name="uq_live_tournament_code"),
    )

    op.create_table(
        "finalmatch",
        sa.Column("match_id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("match_block_id", sa.Integer(), nullable=False),
        sa.Column("match_code", sa.String(), nullable=False),
        sa.Column("team1_tournament_team_id", sa.Integer(), nullable=True),
        sa.Column("team2_tournament_team_id", sa.Integer(), nullable=True),
        sa.Column("team1_display_name", sa.String(), nullable=False),
        sa.Column("team2_display_name", sa.String(), nullable=False),
        sa.Column("team1_scores", sa.String(), nullable=True),
        sa.Column("team2_scores", sa.String(), nullable=True),
        sa.Column("winner_tournament_team_id", sa.Integer(), nullable=True),
        sa.Column("is_draw", sa.Boolean(), nullable=False),
        sa.Column("is_walkover", sa.Boolean(), nullable=False),
        sa.Column("cancellation_type", sa.String(), nullable=True),
        sa.Column("remarks", sa.String(), nullable=True),
        sa.Column("confirmed_by", sa.String(), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["match_id"], ["livematch.id"]),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.ForeignKeyConstraint(["match_block_id"], ["matchblock.id"]),
        sa.PrimaryKeyConstraint("match_id"),
    )

    op.create_table(
        "matchoverride",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("match_code", sa.String(), nullable=False),
        sa.Column("team1_source_override", sa.String(), nullable=True),
        sa.Column("team2_source_override", sa.String(), nullable=True),
        sa.Column("override_reason", sa.String(), nullable=True),
        sa.Column("overridden_by", sa.String(), nullable=True),
        sa.Column("overridden_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tournament_id", "match_code", name="uq_override_tournament_code"),
    )

    op.create_index("ix_livematch_block", "livematch", ["match_block_id"])
    op.create_index("ix_finalmatch_block", "finalmatch", ["match_block_id"])
    op.create_index("ix_tournamentteam_block", "tournamentteam", ["tournament_id", "assigned_block"])


def downgrade() -> None:
    op.drop_index("ix_tournamentteam_block", table_name="tournamentteam")
    op.drop_index("ix_finalmatch_block", table_name="finalmatch")
    op.drop_index("ix_livematch_block", table_name="livematch")
    for table in (
        "matchoverride",
        "finalmatch",
        "livematch",
        "matchblock",
        "tournamentplayer",
        "tournamentteam",
        "player",
        "team",
        "tournamentrule",
        "tournament",
        "matchtemplate",
        "tournamentformat",
        "tournamentgroup",
    ):
        op.drop_table(table)
