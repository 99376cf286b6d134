from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from app.models.division import Division
    from app.models.league import League
    from app.models.player import Player


class RegistrationStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    WAITLISTED = "WAITLISTED"
    CANCELLED = "CANCELLED"


class Registration(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("league_id", "player_id", name="uq_registration_league_player"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    league_id: int = Field(foreign_key="league.id", index=True)
    division_id: int = Field(foreign_key="division.id", index=True)
    player_id: int = Field(foreign_key="player.id", index=True)
    status: RegistrationStatus = Field(default=RegistrationStatus.PENDING, sa_column=Column(String, nullable=False))
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    league: "League" = Relationship(back_populates="registrations")
    division: "Division" = Relationship(back_populates="registrations")
    player: "Player" = Relationship(back_populates="registrations")
