from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, SQLModel


class MatchBlock(SQLModel, table=True):
    """A group of matches within a phase: a league block ("A") or a bracket segment."""

    __table_args__ = (SAUniqueConstraint("tournament_id", "phase", "block_name", name="uq_block_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id")
    phase: str  # "preliminary" | "final"
    block_name: str
    display_round_name: Optional[str] = None
    block_order: int = Field(default=0)
    # Stored standings: list of TeamStanding dicts, ordered by position
    team_rankings: Optional[List[Dict[str, Any]]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    remarks: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
