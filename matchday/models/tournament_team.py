from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel

WITHDRAWAL_ACTIVE = "active"
WITHDRAWAL_REQUESTED = "withdrawal_requested"
WITHDRAWAL_APPROVED = "withdrawal_approved"
WITHDRAWAL_REJECTED = "withdrawal_rejected"


class TournamentTeam(SQLModel, table=True):
    """A team's registration in one tournament.

    The same master team may enter a tournament more than once under different names.
    """

    __table_args__ = (SAUniqueConstraint("tournament_id", "team_name", name="uq_entry_tournament_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id")
    team_id: int = Field(foreign_key="team.id")
    team_name: str
    team_omission: Optional[str] = None

    # Draw results
    assigned_block: Optional[str] = None
    block_position: Optional[int] = None

    withdrawal_status: str = Field(default=WITHDRAWAL_ACTIVE)
    withdrawal_reason: Optional[str] = None
    withdrawal_requested_at: Optional[datetime] = None
    withdrawal_processed_at: Optional[datetime] = None
    withdrawal_processed_by: Optional[str] = None
    withdrawal_admin_comment: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def display_name(self) -> str:
        return self.team_omission or self.team_name
