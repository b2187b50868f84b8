from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from matchday.models.tournament_group import TournamentGroup

STATUS_PLANNING = "planning"
STATUS_ONGOING = "ongoing"
STATUS_COMPLETED = "completed"


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    group_id: Optional[int] = Field(default=None, foreign_key="tournamentgroup.id")
    format_id: int = Field(foreign_key="tournamentformat.id")
    name: str
    venue: Optional[str] = None
    team_count: int = Field(default=0)
    court_count: int = Field(default=1)
    match_duration_minutes: int = Field(default=15)
    break_duration_minutes: int = Field(default=5)
    event_start_date: date
    event_end_date: date
    recruitment_start_date: Optional[date] = None
    recruitment_end_date: Optional[date] = None
    status: str = Field(default=STATUS_PLANNING)  # "planning" | "ongoing" | "completed"
    is_public: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    group: Optional["TournamentGroup"] = Relationship(back_populates="tournaments")
