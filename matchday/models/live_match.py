from datetime import date, datetime
from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel

MATCH_SCHEDULED = "scheduled"
MATCH_ONGOING = "ongoing"
MATCH_COMPLETED = "completed"
MATCH_CANCELLED = "cancelled"

CANCEL_NO_SHOW_BOTH = "no_show_both"
CANCEL_NO_SHOW_TEAM1 = "no_show_team1"
CANCEL_NO_SHOW_TEAM2 = "no_show_team2"
CANCEL_NO_COUNT = "no_count"
CANCELLATION_TYPES = (CANCEL_NO_SHOW_BOTH, CANCEL_NO_SHOW_TEAM1, CANCEL_NO_SHOW_TEAM2, CANCEL_NO_COUNT)


class LiveMatch(SQLModel, table=True):
    """Mutable match record: teams, scores and status while a match is played."""

    __table_args__ = (SAUniqueConstraint("tournament_id", "match_code", name="uq_live_tournament_code"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id")
    match_block_id: int = Field(foreign_key="matchblock.id")
    match_number: int
    match_code: str
    tournament_date: Optional[date] = None
    court_number: Optional[int] = None
    start_time: Optional[str] = None

    team1_tournament_team_id: Optional[int] = Field(default=None, foreign_key="tournamentteam.id")
    team2_tournament_team_id: Optional[int] = Field(default=None, foreign_key="tournamentteam.id")
    team1_display_name: str
    team2_display_name: str

    # Per-period goals, comma separated ("1,0,2")
    team1_scores: Optional[str] = None
    team2_scores: Optional[str] = None
    winner_tournament_team_id: Optional[int] = Field(default=None, foreign_key="tournamentteam.id")
    is_draw: bool = Field(default=False)
    is_walkover: bool = Field(default=False)

    match_status: str = Field(default=MATCH_SCHEDULED)
    # Set when the referee starts (ongoing) and ends (completed) the match
    current_period: Optional[int] = None
    actual_start_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None
    cancellation_type: Optional[str] = None
    remarks: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
