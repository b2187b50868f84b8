from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class FinalMatch(SQLModel, table=True):
    """Immutable result record, written once when a live match is confirmed.

    match_id is the live match id; the primary key prevents double confirmation.
    """

    match_id: int = Field(primary_key=True, foreign_key="livematch.id")
    tournament_id: int = Field(foreign_key="tournament.id")
    match_block_id: int = Field(foreign_key="matchblock.id")
    match_code: str
    team1_tournament_team_id: Optional[int] = None
    team2_tournament_team_id: Optional[int] = None
    team1_display_name: str
    team2_display_name: str
    team1_scores: Optional[str] = None
    team2_scores: Optional[str] = None
    winner_tournament_team_id: Optional[int] = None
    is_draw: bool = Field(default=False)
    is_walkover: bool = Field(default=False)
    cancellation_type: Optional[str] = None
    remarks: Optional[str] = None
    confirmed_by: Optional[str] = None
    confirmed_at: datetime = Field(default_factory=datetime.utcnow)
