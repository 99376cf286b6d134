from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from app.models.match import Match


class Game(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("match_id", "game_number", name="uq_game_match_number"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    game_number: int  # 1..N within the match
    player1_score: int
    player2_score: int
    player3_score: Optional[int] = Field(default=None)  # CUTTHROAT only
    winner_id: Optional[int] = Field(default=None, foreign_key="player.id")

    # Relationships
    match: "Match" = Relationship(back_populates="games")

    def scores(self) -> List[int]:
        """Per-slot scores in slot order (2 or 3 values)."""
        values = [self.player1_score, self.player2_score]
        if self.player3_score is not None:
            values.append(self.player3_score)
        return values
