from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from matchday.models.tournament_format import TournamentFormat

PHASE_PRELIMINARY = "preliminary"
PHASE_FINAL = "final"


class MatchTemplate(SQLModel, table=True):
    """Static description of one scheduled match in a format.

    team1_source / team2_source hold a source expression:
    "A1" (draw slot), "A_1" (block standing) or "M3_winner" / "M3_loser" (bracket result).
    """

    __table_args__ = (SAUniqueConstraint("format_id", "match_code", name="uq_template_format_code"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    format_id: int = Field(foreign_key="tournamentformat.id")
    match_number: int
    match_code: str
    match_type: str = Field(default="normal")
    phase: str = Field(default=PHASE_PRELIMINARY)  # "preliminary" | "final"
    round_name: Optional[str] = None
    block_name: Optional[str] = None
    team1_source: Optional[str] = None
    team2_source: Optional[str] = None
    team1_display_name: str
    team2_display_name: str
    day_number: int = Field(default=1)
    execution_priority: int = Field(default=1)
    court_number: Optional[int] = None
    suggested_start_time: Optional[str] = None
    is_bye_match: bool = Field(default=False)

    # Knockout placement: winner takes winner_position, loser shares loser_position_start..end
    winner_position: Optional[int] = None
    loser_position_start: Optional[int] = None
    loser_position_end: Optional[int] = None
    position_note: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)

    tournament_format: "TournamentFormat" = Relationship(back_populates="templates")
