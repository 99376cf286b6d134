from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Tuple

from sqlalchemy import String
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from app.models.disputed_score import DisputedScore
    from app.models.game import Game
    from app.models.league import League


class MatchStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    DISPUTED = "DISPUTED"
    CANCELLED = "CANCELLED"


# Statuses whose games feed provisional standings
REPORTED_STATUSES = (MatchStatus.IN_PROGRESS, MatchStatus.COMPLETED, MatchStatus.DISPUTED)

# Terminal for the score lifecycle; only an admin may reopen
TERMINAL_STATUSES = (MatchStatus.COMPLETED, MatchStatus.DISPUTED, MatchStatus.CANCELLED)


class Match(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    league_id: int = Field(foreign_key="league.id", index=True)
    division_id: int = Field(foreign_key="division.id", index=True)

    # Player slots are written once at creation.
    # player3: CUTTHROAT third player / DOUBLES partner of player1
    # player4: DOUBLES partner of player2
    player1_id: int = Field(foreign_key="player.id")
    player2_id: int = Field(foreign_key="player.id")
    player3_id: Optional[int] = Field(default=None, foreign_key="player.id")
    player4_id: Optional[int] = Field(default=None, foreign_key="player.id")

    court_number: Optional[int] = Field(default=None)  # 1 | 2, null for makeup matches
    scheduled_time: Optional[datetime] = Field(default=None)
    week_number: int
    is_makeup: bool = Field(default=False)

    status: MatchStatus = Field(default=MatchStatus.SCHEDULED, sa_column=Column(String, nullable=False))
    player1_confirmed: bool = Field(default=False)
    player2_confirmed: bool = Field(default=False)
    winner_id: Optional[int] = Field(default=None, foreign_key="player.id")
    score_reported_by: Optional[int] = Field(default=None, foreign_key="player.id")
    score_reported_at: Optional[datetime] = Field(default=None)
    score_disputed: bool = Field(default=False)
    dispute_reason: Optional[str] = Field(default=None)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    league: "League" = Relationship(back_populates="matches")
    games: List["Game"] = Relationship(
        back_populates="match",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "Game.game_number"},
    )
    disputed_scores: List["DisputedScore"] = Relationship(
        back_populates="match",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "DisputedScore.id"},
    )

    @property
    def status_value(self) -> str:
        return MatchStatus(self.status).value

    def participant_ids(self) -> List[int]:
        """Populated player slots in slot order."""
        return [
            pid
            for pid in (self.player1_id, self.player2_id, self.player3_id, self.player4_id)
            if pid is not None
        ]

    def is_participant(self, player_id: int) -> bool:
        return player_id in self.participant_ids()

    def score_sides(self) -> List[Tuple[int, ...]]:
        """
        Players owning each score slot, in score order.

        Singles: (p1,) vs (p2,). Cutthroat: (p1,), (p2,), (p3,) each with
        their own score. Doubles: (p1, p3) vs (p2, p4), one score per side.
        """
        if self.player4_id is not None:
            side_a = (self.player1_id,) + ((self.player3_id,) if self.player3_id is not None else ())
            return [side_a, (self.player2_id, self.player4_id)]
        sides = [(self.player1_id,), (self.player2_id,)]
        if self.player3_id is not None:
            sides.append((self.player3_id,))
        return sides

    def score_leaders(self) -> List[int]:
        """Player credited with a win for each score slot (first player of the side)."""
        return [side[0] for side in self.score_sides()]
