from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from app.models.league import League
    from app.models.registration import Registration


class Division(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("league_id", "name", name="uq_league_division_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    league_id: int = Field(foreign_key="league.id", index=True)
    name: str
    sort_order: int = Field(default=0)  # Scheduling order within the league, then id

    # Relationships
    league: "League" = Relationship(back_populates="divisions")
    registrations: List["Registration"] = Relationship(back_populates="division")
