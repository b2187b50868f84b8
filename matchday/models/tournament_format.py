from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from matchday.models.match_template import MatchTemplate

FORMAT_LEAGUE = "league"
FORMAT_TOURNAMENT = "tournament"


class TournamentFormat(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    team_count: int
    preliminary_format_type: str = Field(default=FORMAT_LEAGUE)  # "league" | "tournament"
    final_format_type: str = Field(default=FORMAT_TOURNAMENT)  # "league" | "tournament"
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    templates: List["MatchTemplate"] = Relationship(back_populates="tournament_format")
