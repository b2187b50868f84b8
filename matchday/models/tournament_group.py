from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from matchday.models.tournament import Tournament


class TournamentGroup(SQLModel, table=True):
    """An umbrella event that holds one or more tournaments (e.g. one per age category)."""

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    organizer: Optional[str] = None
    venue: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    tournaments: List["Tournament"] = Relationship(back_populates="group")
