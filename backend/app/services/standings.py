"""
Standings Aggregator

Recomputes per-division standings from reported matches on every call;
nothing is cached or stored.

Counting rules:
- Matches with status IN_PROGRESS, COMPLETED or DISPUTED count (disputed
  matches use their last accepted games).
- A game counts only if some score reached points_to_win.
- A counted game is won by the strict-max score; a tie at the top awards
  nobody.
- A match is won by the side with strictly the most game wins; every other
  participant takes a loss. No single leader -> no win and no loss.

Ranking:
- BY_POINTS: points_for, wins, games_won (all desc), then name
- BY_WINS: win_percentage, wins, games_won, points_for (all desc), then name
"""

import logging
from collections import defaultdict
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Hashable, List, Optional, Sequence, Tuple

from sqlmodel import Session, select

from app.models.division import Division
from app.models.game import Game
from app.models.league import League, RankingMethod
from app.models.match import REPORTED_STATUSES, Match
from app.models.player import Player
from app.models.registration import Registration, RegistrationStatus
from app.services.errors import NotFoundError

logger = logging.getLogger(__name__)


@dataclass
class StandingsPlayer:
    player_id: Hashable
    name: str


@dataclass
class MatchResult:
    """A reported match reduced to score sides and per-game scores."""

    sides: List[Tuple[Hashable, ...]]  # players owning each score slot
    games: List[List[int]] = field(default_factory=list)  # scores per game, slot order
    match_id: Optional[Hashable] = None


@dataclass
class StandingsRow:
    player_id: Hashable
    player_name: str
    matches: int = 0
    wins: int = 0
    losses: int = 0
    win_percentage: float = 0.0
    games_won: int = 0
    games_lost: int = 0
    points_for: int = 0
    points_against: int = 0
    rank: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def strict_leader(values: Sequence[int]) -> Optional[int]:
    """Index of the single highest value, None when the top is shared."""
    if not values:
        return None
    top = max(values)
    leaders = [i for i, v in enumerate(values) if v == top]
    return leaders[0] if len(leaders) == 1 else None


def _name_key(row: StandingsRow) -> Tuple[str, str, str]:
    return (row.player_name.casefold(), row.player_name, str(row.player_id))


def sort_key(row: StandingsRow, ranking_method: RankingMethod) -> Tuple:
    if RankingMethod(ranking_method) == RankingMethod.BY_POINTS:
        return (-row.points_for, -row.wins, -row.games_won) + _name_key(row)
    return (-row.win_percentage, -row.wins, -row.games_won, -row.points_for) + _name_key(row)


def rank_rows(rows: List[StandingsRow], ranking_method: RankingMethod) -> List[StandingsRow]:
    ranked = sorted(rows, key=lambda r: sort_key(r, ranking_method))
    for position, row in enumerate(ranked, start=1):
        row.rank = position
    return ranked


def compute_standings(
    players: Sequence[StandingsPlayer],
    matches: Sequence[MatchResult],
    points_to_win: int,
    ranking_method: RankingMethod = RankingMethod.BY_WINS,
) -> List[StandingsRow]:
    """
    Aggregate reported matches into ranked rows, one per listed player.

    Players appearing in matches but not listed get no row.
    """
    rows: Dict[Hashable, StandingsRow] = {
        p.player_id: StandingsRow(player_id=p.player_id, player_name=p.name) for p in players
    }

    def credit(player_ids: Sequence[Hashable], **deltas: int) -> None:
        for pid in player_ids:
            row = rows.get(pid)
            if row is None:
                continue
            for attr, delta in deltas.items():
                setattr(row, attr, getattr(row, attr) + delta)

    for match in matches:
        slot_count = len(match.sides)
        slot_game_wins = [0] * slot_count

        for game_number, scores in enumerate(match.games, start=1):
            scores = list(scores)[:slot_count]
            if len(scores) < slot_count or max(scores) < points_to_win:
                logger.info("Match %s game %d discarded: nobody reached %d", match.match_id, game_number, points_to_win)
                continue

            for slot, side in enumerate(match.sides):
                others = [s for i, s in enumerate(scores) if i != slot]
                credit(side, points_for=scores[slot], points_against=max(others) if others else 0)

            winner = strict_leader(scores)
            if winner is None:
                logger.info("Match %s game %d tied at the top; no game winner", match.match_id, game_number)
                continue
            slot_game_wins[winner] += 1
            for slot, side in enumerate(match.sides):
                if slot == winner:
                    credit(side, games_won=1)
                else:
                    credit(side, games_lost=1)

        match_winner = strict_leader(slot_game_wins) if any(slot_game_wins) else None
        if match_winner is None:
            logger.info("Match %s has no single game-win leader; outcome dropped", match.match_id)
            continue
        for slot, side in enumerate(match.sides):
            if slot == match_winner:
                credit(side, wins=1, matches=1)
            else:
                credit(side, losses=1, matches=1)

    for row in rows.values():
        row.win_percentage = (row.wins / row.matches * 100) if row.matches > 0 else 0.0

    return rank_rows(list(rows.values()), ranking_method)


# ============================================================================
# Session-backed reads
# ============================================================================


def load_division_players(session: Session, division_id: int) -> List[StandingsPlayer]:
    rows = session.exec(
        select(Player)
        .join(Registration, Registration.player_id == Player.id)
        .where(
            Registration.division_id == division_id,
            Registration.status == RegistrationStatus.CONFIRMED.value,
        )
        .order_by(Player.name, Player.id)
    ).all()
    return [StandingsPlayer(player_id=p.id, name=p.name) for p in rows]


def load_division_results(session: Session, division_id: int) -> List[MatchResult]:
    matches = session.exec(
        select(Match)
        .where(
            Match.division_id == division_id,
            Match.status.in_([s.value for s in REPORTED_STATUSES]),
        )
        .order_by(Match.week_number, Match.id)
    ).all()
    if not matches:
        return []

    games_by_match: Dict[int, List[Game]] = defaultdict(list)
    games = session.exec(
        select(Game).where(Game.match_id.in_([m.id for m in matches])).order_by(Game.match_id, Game.game_number)
    ).all()
    for game in games:
        games_by_match[game.match_id].append(game)

    results: List[MatchResult] = []
    for match in matches:
        sides = match.score_sides()
        results.append(
            MatchResult(
                sides=sides,
                games=[g.scores()[: len(sides)] for g in games_by_match[match.id]],
                match_id=match.id,
            )
        )
    return results


def division_standings(session: Session, division_id: int) -> List[StandingsRow]:
    """Ranked standings of one division, computed fresh."""
    division = session.get(Division, division_id)
    if not division:
        raise NotFoundError(f"Division {division_id} not found")
    league = session.get(League, division.league_id)
    if not league:
        raise NotFoundError(f"League {division.league_id} not found")

    return compute_standings(
        load_division_players(session, division_id),
        load_division_results(session, division_id),
        points_to_win=league.points_to_win,
        ranking_method=league.ranking_method,
    )


def league_standings(session: Session, league_id: int) -> List[Tuple[Division, List[StandingsRow]]]:
    """Standings of every division of a league, in division order."""
    league = session.get(League, league_id)
    if not league:
        raise NotFoundError(f"League {league_id} not found")
    divisions = session.exec(
        select(Division).where(Division.league_id == league_id).order_by(Division.sort_order, Division.id)
    ).all()
    return [(division, division_standings(session, division.id)) for division in divisions]
