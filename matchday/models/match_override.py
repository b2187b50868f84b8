from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class MatchOverride(SQLModel, table=True):
    """Administrator replacement for a template's team source expression."""

    __table_args__ = (SAUniqueConstraint("tournament_id", "match_code", name="uq_override_tournament_code"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id")
    match_code: str
    team1_source_override: Optional[str] = None
    team2_source_override: Optional[str] = None
    override_reason: Optional[str] = None
    overridden_by: Optional[str] = None
    overridden_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
