from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, SQLModel


class TournamentRule(SQLModel, table=True):
    """Per-phase competition rules: point system, walkover score and tie-break order."""

    __table_args__ = (SAUniqueConstraint("tournament_id", "phase", name="uq_rule_tournament_phase"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id")
    phase: str  # "preliminary" | "final"
    use_extra_time: bool = Field(default=False)
    use_penalty: bool = Field(default=False)
    win_points: int = Field(default=3)
    draw_points: int = Field(default=1)
    loss_points: int = Field(default=0)
    walkover_winner_goals: int = Field(default=3)
    walkover_loser_goals: int = Field(default=0)
    tie_breaking_rules: Optional[List[str]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    notes: Optional[str] = None
    updated_at: datetime = Field(default_factory=datetime.utcnow)
