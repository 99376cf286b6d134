"""
Slot Allocator

Places pairing rounds onto the weekly league night:

- Round k of every division is played in week k (divisions stay in step).
- Week k's league night is start_date + 7 * (k - 1) days.
- The night is cut into back-to-back slots of match_duration minutes from
  play_start_time; each slot exists once per court (2 courts).
- Matches fill slots in division order, then group order: slot s of a night
  is court (s % 2) + 1 at start + (s // 2) * duration.
- Anything beyond the night's capacity, or on a night after end_date,
  becomes a makeup match: same week and players, no court, no time.

Byes never become matches.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Hashable, List, Mapping, Optional, Sequence, Tuple

from app.models.league import COURT_COUNT
from app.services.errors import InvalidInputError
from app.services.pairing_generator import PairingRound

SLOT_GRANULARITY_MINUTES = 5


@dataclass
class PlannedMatch:
    """A generated match before persistence."""

    division_id: Hashable
    week_number: int
    players: Tuple[Hashable, ...]
    court_number: Optional[int] = None
    scheduled_time: Optional[datetime] = None
    is_makeup: bool = False

    def _slot(self, index: int) -> Optional[Hashable]:
        return self.players[index] if len(self.players) > index else None

    @property
    def player1_id(self):
        return self._slot(0)

    @property
    def player2_id(self):
        return self._slot(1)

    @property
    def player3_id(self):
        return self._slot(2)

    @property
    def player4_id(self):
        return self._slot(3)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "division_id": self.division_id,
            "week_number": self.week_number,
            "player1_id": self.player1_id,
            "player2_id": self.player2_id,
            "player3_id": self.player3_id,
            "player4_id": self.player4_id,
            "court_number": self.court_number,
            "scheduled_time": self.scheduled_time.isoformat() if self.scheduled_time else None,
            "is_makeup": self.is_makeup,
        }


@dataclass
class SlotConfig:
    start_date: date
    end_date: date
    match_duration_minutes: int = 60
    play_start_time: time = time(18, 0)
    play_end_time: time = time(19, 0)
    court_count: int = COURT_COUNT

    @classmethod
    def from_league(cls, league: Any) -> "SlotConfig":
        return cls(
            start_date=league.start_date,
            end_date=league.end_date,
            match_duration_minutes=league.match_duration_minutes,
            play_start_time=league.play_start_time,
            play_end_time=league.play_end_time,
        )


@dataclass
class AllocationResult:
    scheduled: List[PlannedMatch] = field(default_factory=list)
    makeup: List[PlannedMatch] = field(default_factory=list)


def _normalize(minutes: int) -> int:
    """Round minutes-from-midnight to the 5-minute grid."""
    return int(round(minutes / SLOT_GRANULARITY_MINUTES)) * SLOT_GRANULARITY_MINUTES


def nightly_start_times(config: SlotConfig) -> List[time]:
    """
    Start times of the back-to-back slots of one league night.

    Each start time exists once per court.
    """
    duration = config.match_duration_minutes
    if duration <= 0:
        raise InvalidInputError(f"match_duration_minutes must be positive, got {duration}")

    start = _normalize(config.play_start_time.hour * 60 + config.play_start_time.minute)
    end = _normalize(config.play_end_time.hour * 60 + config.play_end_time.minute)

    times: List[time] = []
    minutes = start
    while minutes + duration <= end:
        times.append(time(minutes // 60, minutes % 60))
        minutes += duration
    return times


def week_date(config: SlotConfig, week_number: int) -> date:
    return config.start_date + timedelta(days=7 * (week_number - 1))


def allocate_slots(
    rounds_by_division: Mapping[Hashable, Sequence[PairingRound]],
    config: SlotConfig,
) -> AllocationResult:
    """
    Assign every generated group to a (week, court, time) or to makeup.

    Args:
        rounds_by_division: Division id -> rounds, iterated in mapping order
        config: League night configuration

    Returns:
        AllocationResult with scheduled matches (court and time set) and
        makeup matches (court and time None), both in week order.
    """
    starts = nightly_start_times(config)
    capacity = len(starts) * config.court_count

    weeks: Dict[int, List[Tuple[Hashable, Tuple[Hashable, ...]]]] = {}
    for division_id, rounds in rounds_by_division.items():
        for pairing_round in rounds:
            bucket = weeks.setdefault(pairing_round.round_number, [])
            for group in pairing_round.groups:
                bucket.append((division_id, tuple(group)))

    result = AllocationResult()
    for week_number in sorted(weeks):
        night = week_date(config, week_number)
        playable = night <= config.end_date
        for slot_index, (division_id, players) in enumerate(weeks[week_number]):
            if playable and slot_index < capacity:
                court_number = slot_index % config.court_count + 1
                start = starts[slot_index // config.court_count]
                result.scheduled.append(
                    PlannedMatch(
                        division_id=division_id,
                        week_number=week_number,
                        players=players,
                        court_number=court_number,
                        scheduled_time=datetime.combine(night, start),
                        is_makeup=False,
                    )
                )
            else:
                result.makeup.append(
                    PlannedMatch(
                        division_id=division_id,
                        week_number=week_number,
                        players=players,
                        is_makeup=True,
                    )
                )

    return result
