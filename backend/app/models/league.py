from datetime import date, datetime, time
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from app.models.division import Division
    from app.models.match import Match
    from app.models.registration import Registration

# Every league night runs on the same two physical courts.
COURT_COUNT = 2


class GameType(str, Enum):
    SINGLES = "SINGLES"
    DOUBLES = "DOUBLES"
    CUTTHROAT = "CUTTHROAT"


class RankingMethod(str, Enum):
    BY_WINS = "BY_WINS"
    BY_POINTS = "BY_POINTS"


class LeagueStatus(str, Enum):
    UPCOMING = "UPCOMING"
    REGISTRATION_OPEN = "REGISTRATION_OPEN"
    REGISTRATION_CLOSED = "REGISTRATION_CLOSED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


PLAYERS_PER_MATCH = {
    GameType.SINGLES: 2,
    GameType.DOUBLES: 4,
    GameType.CUTTHROAT: 3,
}


def players_per_match(game_type: GameType) -> int:
    """Group size for a game type: singles 2, doubles 4, cutthroat 3."""
    return PLAYERS_PER_MATCH[GameType(game_type)]


class League(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    game_type: GameType = Field(sa_column=Column(String, nullable=False))
    ranking_method: RankingMethod = Field(default=RankingMethod.BY_WINS, sa_column=Column(String, nullable=False))
    points_to_win: int = Field(default=11)
    win_by_two: bool = Field(default=True)
    match_duration_minutes: int = Field(default=60)

    # League night window; slots per court = window // match duration
    play_start_time: time = Field(default=time(18, 0))
    play_end_time: time = Field(default=time(19, 0))

    registration_opens: Optional[datetime] = None
    registration_closes: Optional[datetime] = None
    start_date: date
    end_date: date

    status: LeagueStatus = Field(default=LeagueStatus.UPCOMING, sa_column=Column(String, nullable=False))
    schedule_generated: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    divisions: List["Division"] = Relationship(back_populates="league")
    registrations: List["Registration"] = Relationship(back_populates="league")
    matches: List["Match"] = Relationship(back_populates="league")

    @property
    def players_per_match(self) -> int:
        return players_per_match(self.game_type)
