from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from matchday.models.player import Player


class Team(SQLModel, table=True):
    """Master team record, shared across every tournament the team enters."""

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    omission: Optional[str] = None  # short display name
    contact_person: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    players: List["Player"] = Relationship(back_populates="team")
