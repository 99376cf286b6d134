"""
Pairing Generator

Deterministic round-robin rounds for one division. Each round partitions the
division's players into groups of the match size plus a bye list:

- Group size 2 (SINGLES): classic circle method. Seat 0 is fixed, the rest
  rotate one seat per round, seat i plays seat n-1-i. Odd rosters get a BYE
  seat; whoever faces it sits out. n-1 rounds (even n) or n rounds (odd n),
  every pair meets exactly once.
- Group size 3/4 (CUTTHROAT/DOUBLES): the same rotation supplies the seat
  order. Byes are taken first (fewest byes so far), then the rotated order is
  walked in fixed-size chunks; each chunk is completed with the players that
  add the most not-yet-met pairs. Rounds continue until every unordered pair
  has shared a group at least once.

No randomness: the same ordered roster always yields the same rounds.
"""

import logging
from dataclasses import dataclass, field
from itertools import combinations
from typing import Hashable, List, Sequence, Set, Tuple

from app.models.league import GameType, players_per_match
from app.services.errors import InvalidInputError

logger = logging.getLogger(__name__)

PlayerId = Hashable


@dataclass
class PairingRound:
    round_number: int  # 1-based; maps to week number in the slot allocator
    groups: List[Tuple[PlayerId, ...]] = field(default_factory=list)
    byes: List[PlayerId] = field(default_factory=list)


def rotated_seats(seat_count: int, round_index: int) -> List[int]:
    """
    Seat order for a 0-based round: seat 0 fixed, remaining seats rotated
    right by round_index.

    Round 0: [0, 1, 2, 3]; round 1: [0, 3, 1, 2]; round 2: [0, 2, 3, 1]
    """
    if seat_count <= 2:
        return list(range(seat_count))
    rest = list(range(1, seat_count))
    shift = round_index % len(rest)
    if shift:
        rest = rest[-shift:] + rest[:-shift]
    return [0] + rest


def pair_rounds(player_count: int) -> List[Tuple[List[Tuple[int, int]], List[int]]]:
    """
    Circle-method pairings over 0-based indexes.

    Returns one (pairs, byes) tuple per round.
    """
    n = player_count
    seats = n + 1 if n % 2 == 1 else n  # Add BYE seat for odd n
    bye_seat = n if n % 2 == 1 else -1
    half = seats // 2

    rounds: List[Tuple[List[Tuple[int, int]], List[int]]] = []
    for round_index in range(seats - 1):
        order = rotated_seats(seats, round_index)
        pairs: List[Tuple[int, int]] = []
        byes: List[int] = []
        for i in range(half):
            a, b = order[i], order[seats - 1 - i]
            if a == bye_seat:
                byes.append(b)
            elif b == bye_seat:
                byes.append(a)
            else:
                pairs.append((a, b))
        rounds.append((pairs, byes))
    return rounds


def group_rounds(player_count: int, group_size: int) -> List[Tuple[List[Tuple[int, ...]], List[int]]]:
    """
    Rotation-and-chunk grouping over 0-based indexes for group sizes > 2.

    Returns one (groups, byes) tuple per round; stops once every pair of
    players has shared a group.
    """
    n = player_count
    bye_count = n % group_size
    total_pairs = n * (n - 1) // 2
    max_rounds = n * n

    met: Set[Tuple[int, int]] = set()
    unmet = [n - 1] * n
    bye_totals = [0] * n

    def is_new(a: int, b: int) -> bool:
        return (min(a, b), max(a, b)) not in met

    def new_pairs(candidate: int, members: Sequence[int]) -> int:
        return sum(1 for m in members if is_new(candidate, m))

    rounds: List[Tuple[List[Tuple[int, ...]], List[int]]] = []
    round_index = 0
    while len(met) < total_pairs:
        if round_index >= max_rounds:
            logger.warning(
                "Pairing stopped after %d rounds with %d of %d pairs met (n=%d, group=%d)",
                round_index, len(met), total_pairs, n, group_size,
            )
            break

        order = rotated_seats(n, round_index)
        seat_of = {player: seat for seat, player in enumerate(order)}

        byes = sorted(order, key=lambda p: (bye_totals[p], unmet[p], -seat_of[p]))[:bye_count]
        bye_set = set(byes)
        available = [p for p in order if p not in bye_set]

        groups: List[Tuple[int, ...]] = []
        while available:
            anchor = max(available, key=lambda p: (new_pairs(p, available), -seat_of[p]))
            group = [anchor]
            available.remove(anchor)
            while len(group) < group_size:
                best = max(available, key=lambda p: (new_pairs(p, group), -seat_of[p]))
                group.append(best)
                available.remove(best)
            groups.append(tuple(sorted(group, key=lambda p: seat_of[p])))

        for group in groups:
            for a, b in combinations(group, 2):
                key = (min(a, b), max(a, b))
                if key not in met:
                    met.add(key)
                    unmet[a] -= 1
                    unmet[b] -= 1
        for p in byes:
            bye_totals[p] += 1

        groups.sort(key=lambda g: seat_of[g[0]])
        rounds.append((groups, sorted(byes, key=lambda p: seat_of[p])))
        round_index += 1

    return rounds


def generate_rounds(players: Sequence[PlayerId], group_size: int) -> List[PairingRound]:
    """
    Generate a full round-robin cycle for one division.

    Args:
        players: Ordered player identifiers (order drives seating)
        group_size: Players per match (2, 3 or 4)

    Returns:
        PairingRound list; every player is in exactly one group or the bye
        list of each round. Fewer players than group_size yields a single
        round of byes; an empty roster yields no rounds.
    """
    if group_size < 2:
        raise InvalidInputError(f"Group size must be at least 2, got {group_size}")
    if len(set(players)) != len(players):
        raise InvalidInputError("Duplicate player ids in division roster")

    n = len(players)
    if n == 0:
        return []
    if n < group_size:
        return [PairingRound(round_number=1, groups=[], byes=list(players))]

    if group_size == 2:
        index_rounds = pair_rounds(n)
    else:
        index_rounds = group_rounds(n, group_size)

    result: List[PairingRound] = []
    for round_number, (groups, byes) in enumerate(index_rounds, start=1):
        result.append(
            PairingRound(
                round_number=round_number,
                groups=[tuple(players[i] for i in group) for group in groups],
                byes=[players[i] for i in byes],
            )
        )
    logger.debug("Generated %d rounds for %d players (group size %d)", len(result), n, group_size)
    return result


def generate_division_rounds(players: Sequence[PlayerId], game_type: GameType) -> List[PairingRound]:
    """generate_rounds with the group size implied by the league game type."""
    return generate_rounds(players, players_per_match(game_type))
