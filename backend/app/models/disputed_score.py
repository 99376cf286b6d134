from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from app.models.match import Match


class DisputedScore(SQLModel, table=True):
    """Append-only audit row for one game of a contested score report."""

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    game_number: int
    player1_score: int
    player2_score: int
    player3_score: Optional[int] = Field(default=None)
    reported_by: int = Field(foreign_key="player.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    match: "Match" = Relationship(back_populates="disputed_scores")
