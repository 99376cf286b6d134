"""
Schedule Generator

Composes the pairing generator and the slot allocator:

    generate(league, roster) -> ScheduleResult

Pure and deterministic for a given roster order. The session-backed helpers
load the confirmed roster, persist the result behind an atomic
"no schedule yet" guard, and reset a league's schedule.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Sequence

from sqlmodel import Session, func, select, text

from app.models.division import Division
from app.models.league import GameType, League, players_per_match
from app.models.match import Match, MatchStatus
from app.models.player import Player
from app.models.registration import Registration, RegistrationStatus
from app.services.errors import InvalidInputError, NotFoundError, ScheduleAlreadyExistsError
from app.services.pairing_generator import PairingRound, generate_rounds
from app.services.slot_allocator import PlannedMatch, SlotConfig, allocate_slots
from app.utils.sql import scalar_int

logger = logging.getLogger(__name__)


@dataclass
class RosterEntry:
    player_id: Hashable
    division_id: Hashable
    name: str = ""


@dataclass
class ScheduleResult:
    scheduled_matches: List[PlannedMatch] = field(default_factory=list)
    makeup_matches: List[PlannedMatch] = field(default_factory=list)
    rounds_by_division: Dict[Hashable, List[PairingRound]] = field(default_factory=dict)

    @property
    def total_weeks(self) -> int:
        weeks = [m.week_number for m in self.scheduled_matches + self.makeup_matches]
        return max(weeks) if weeks else 0

    @property
    def projected_games(self) -> int:
        return len(self.scheduled_matches) + len(self.makeup_matches)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scheduled_matches": [m.to_dict() for m in self.scheduled_matches],
            "makeup_matches": [m.to_dict() for m in self.makeup_matches],
            "total_weeks": self.total_weeks,
            "projected_games": self.projected_games,
        }


def group_roster_by_division(roster: Sequence[RosterEntry]) -> Dict[Hashable, List[Hashable]]:
    """Division id -> ordered player ids, divisions in first-appearance order."""
    divisions: Dict[Hashable, List[Hashable]] = {}
    seen = set()
    for entry in roster:
        if entry.player_id in seen:
            raise InvalidInputError(f"Player {entry.player_id} appears more than once in the roster")
        seen.add(entry.player_id)
        divisions.setdefault(entry.division_id, []).append(entry.player_id)
    return divisions


def generate(league: Any, roster: Sequence[RosterEntry]) -> ScheduleResult:
    """
    Generate the full league schedule from a confirmed roster.

    Args:
        league: League configuration (game_type, match duration, league
            night window, start/end dates)
        roster: Confirmed roster entries; order drives division order and
            seating within each division

    Returns:
        ScheduleResult with scheduled matches (court + time) and makeup
        matches (no court/time), both tagged with week and division.

    Raises:
        InvalidInputError: empty roster or fewer players than one match needs
    """
    group_size = players_per_match(league.game_type)

    if not roster:
        raise InvalidInputError("Cannot generate a schedule for an empty roster")
    if len(roster) < group_size:
        raise InvalidInputError(
            f"{GameType(league.game_type).value} needs at least {group_size} confirmed players, got {len(roster)}"
        )
    if league.end_date < league.start_date:
        raise InvalidInputError("League end_date must be on or after start_date")

    players_by_division = group_roster_by_division(roster)

    rounds_by_division: Dict[Hashable, List[PairingRound]] = {}
    for division_id, player_ids in players_by_division.items():
        rounds = generate_rounds(player_ids, group_size)
        rounds_by_division[division_id] = rounds
        if rounds and not any(r.groups for r in rounds):
            logger.info(
                "Division %s has %d players, fewer than %d; no matches generated",
                division_id, len(player_ids), group_size,
            )

    allocation = allocate_slots(rounds_by_division, SlotConfig.from_league(league))

    return ScheduleResult(
        scheduled_matches=allocation.scheduled,
        makeup_matches=allocation.makeup,
        rounds_by_division=rounds_by_division,
    )


# ============================================================================
# Session-backed operations
# ============================================================================


def get_league_or_raise(session: Session, league_id: int) -> League:
    league = session.get(League, league_id)
    if not league:
        raise NotFoundError(f"League {league_id} not found")
    return league


def load_confirmed_roster(session: Session, league_id: int) -> List[RosterEntry]:
    """
    Confirmed registrations of a league in scheduling order.

    Order: division sort_order -> division id -> registration created_at -> registration id
    """
    rows = session.exec(
        select(Registration, Player)
        .join(Player, Player.id == Registration.player_id)
        .join(Division, Division.id == Registration.division_id)
        .where(
            Registration.league_id == league_id,
            Registration.status == RegistrationStatus.CONFIRMED.value,
        )
        .order_by(Division.sort_order, Division.id, Registration.created_at, Registration.id)
    ).all()
    return [RosterEntry(player_id=reg.player_id, division_id=reg.division_id, name=player.name) for reg, player in rows]


def count_league_matches(session: Session, league_id: int) -> int:
    return scalar_int(session.exec(select(func.count(Match.id)).where(Match.league_id == league_id)).one())


def preview_schedule(session: Session, league_id: int) -> ScheduleResult:
    """Generate a schedule for the league without writing anything."""
    league = get_league_or_raise(session, league_id)
    return generate(league, load_confirmed_roster(session, league_id))


def create_schedule(session: Session, league_id: int) -> ScheduleResult:
    """
    Generate and persist the league schedule.

    The league's schedule_generated flag is claimed with a conditional
    UPDATE; if it was already set, or matches already exist, nothing is
    written and ScheduleAlreadyExistsError is raised.
    """
    league = get_league_or_raise(session, league_id)
    if league.schedule_generated or count_league_matches(session, league_id) > 0:
        raise ScheduleAlreadyExistsError(f"Schedule already generated for league {league_id}")

    result = generate(league, load_confirmed_roster(session, league_id))

    try:
        claim = session.execute(
            text("UPDATE league SET schedule_generated = :claimed WHERE id = :league_id AND schedule_generated = :free"),
            {"claimed": True, "free": False, "league_id": league_id},
        )
        if claim.rowcount != 1 or count_league_matches(session, league_id) > 0:
            session.rollback()
            raise ScheduleAlreadyExistsError(f"Schedule already generated for league {league_id}")

        for planned in result.scheduled_matches + result.makeup_matches:
            session.add(
                Match(
                    league_id=league_id,
                    division_id=planned.division_id,
                    player1_id=planned.player1_id,
                    player2_id=planned.player2_id,
                    player3_id=planned.player3_id,
                    player4_id=planned.player4_id,
                    court_number=planned.court_number,
                    scheduled_time=planned.scheduled_time,
                    week_number=planned.week_number,
                    is_makeup=planned.is_makeup,
                    status=MatchStatus.SCHEDULED,
                )
            )
        session.commit()
    except ScheduleAlreadyExistsError:
        raise
    except Exception:
        session.rollback()
        raise

    session.refresh(league)
    logger.info(
        "League %d schedule created: %d scheduled, %d makeup, %d weeks",
        league_id, len(result.scheduled_matches), len(result.makeup_matches), result.total_weeks,
    )
    return result


def reset_schedule(session: Session, league_id: int) -> int:
    """
    Delete every match of a league (with games and disputes) and clear the
    schedule_generated flag. Returns the number of deleted matches.
    """
    get_league_or_raise(session, league_id)
    deleted = count_league_matches(session, league_id)
    params = {"league_id": league_id}
    try:
        session.execute(
            text("DELETE FROM game WHERE match_id IN (SELECT id FROM match WHERE league_id = :league_id)"), params
        )
        session.execute(
            text("DELETE FROM disputedscore WHERE match_id IN (SELECT id FROM match WHERE league_id = :league_id)"),
            params,
        )
        session.execute(text("DELETE FROM match WHERE league_id = :league_id"), params)
        session.execute(
            text("UPDATE league SET schedule_generated = :free WHERE id = :league_id"),
            {"free": False, "league_id": league_id},
        )
        session.commit()
    except Exception:
        session.rollback()
        raise

    session.expire_all()
    logger.info("League %d schedule reset: %d matches deleted", league_id, deleted)
    return deleted


def list_league_matches(session: Session, league_id: int) -> List[Match]:
    """Persisted matches in week order, makeup matches last within a week."""
    return list(
        session.exec(
            select(Match)
            .where(Match.league_id == league_id)
            .order_by(Match.week_number, Match.is_makeup, Match.scheduled_time, Match.court_number, Match.id)
        ).all()
    )


def registration_has_matches(session: Session, league_id: int, player_id: int) -> bool:
    """True once the player appears in any match slot of the league (withdrawal is refused then)."""
    count = session.exec(
        select(func.count(Match.id)).where(
            Match.league_id == league_id,
            (Match.player1_id == player_id)
            | (Match.player2_id == player_id)
            | (Match.player3_id == player_id)
            | (Match.player4_id == player_id),
        )
    ).one()
    return scalar_int(count) > 0


def league_has_schedule(session: Session, league_id: int) -> bool:
    return count_league_matches(session, league_id) > 0
