from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class TournamentPlayer(SQLModel, table=True):
    __table_args__ = (
        SAUniqueConstraint("tournament_team_id", "player_id", name="uq_entry_player"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id")
    tournament_team_id: int = Field(foreign_key="tournamentteam.id")
    player_id: int = Field(foreign_key="player.id")
    jersey_number: Optional[int] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
