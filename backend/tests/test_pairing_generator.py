"""
Tests for round-robin pairing generation.
"""

from itertools import combinations

import pytest

from app.models.league import GameType
from app.services.errors import InvalidInputError
from app.services.pairing_generator import (
    generate_division_rounds,
    generate_rounds,
    pair_rounds,
    rotated_seats,
)


def _assert_partition(rounds, players):
    """Every player is in exactly one group or the bye list of each round."""
    for r in rounds:
        seen = [p for g in r.groups for p in g] + list(r.byes)
        assert sorted(seen) == sorted(players), f"round {r.round_number} is not a partition"


def _pairs_met(rounds):
    met = set()
    for r in rounds:
        for g in r.groups:
            for a, b in combinations(g, 2):
                met.add(frozenset((a, b)))
    return met


def test_rotated_seats():
    """Seat 0 stays put, the rest rotate one seat per round."""
    assert rotated_seats(4, 0) == [0, 1, 2, 3]
    assert rotated_seats(4, 1) == [0, 3, 1, 2]
    assert rotated_seats(4, 2) == [0, 2, 3, 1]
    assert rotated_seats(4, 3) == [0, 1, 2, 3]
    assert rotated_seats(2, 5) == [0, 1]


def test_pair_rounds_even():
    rounds = pair_rounds(4)
    assert len(rounds) == 3
    for pairs, byes in rounds:
        assert len(pairs) == 2
        assert byes == []


def test_singles_even_roster_every_pair_once():
    players = ["a", "b", "c", "d", "e", "f"]
    rounds = generate_rounds(players, 2)

    assert len(rounds) == 5
    _assert_partition(rounds, players)

    all_pairs = [frozenset(g) for r in rounds for g in r.groups]
    assert len(all_pairs) == 15
    assert len(set(all_pairs)) == 15  # no pair repeats


def test_singles_odd_roster_one_bye_per_round():
    players = [1, 2, 3, 4, 5]
    rounds = generate_rounds(players, 2)

    assert len(rounds) == 5
    _assert_partition(rounds, players)
    for r in rounds:
        assert len(r.groups) == 2
        assert len(r.byes) == 1

    bye_players = [r.byes[0] for r in rounds]
    assert sorted(bye_players) == players  # everyone sits out exactly once
    assert len(_pairs_met(rounds)) == 10


def test_round_numbers_are_one_based():
    rounds = generate_rounds([1, 2, 3, 4], 2)
    assert [r.round_number for r in rounds] == [1, 2, 3]


def test_cutthroat_nine_players_three_groups_no_byes():
    players = list(range(1, 10))
    rounds = generate_rounds(players, 3)

    _assert_partition(rounds, players)
    for r in rounds:
        assert len(r.groups) == 3
        assert all(len(g) == 3 for g in r.groups)
        assert r.byes == []

    assert len(_pairs_met(rounds)) == 36  # every pair shares a group


def test_doubles_four_players_single_round():
    rounds = generate_rounds(["w", "x", "y", "z"], 4)
    assert len(rounds) == 1
    assert rounds[0].groups == [("w", "x", "y", "z")]


def test_doubles_five_players_with_byes():
    players = [10, 20, 30, 40, 50]
    rounds = generate_rounds(players, 4)

    _assert_partition(rounds, players)
    for r in rounds:
        assert len(r.groups) == 1
        assert len(r.byes) == 1
    assert len(_pairs_met(rounds)) == 10


def test_cutthroat_with_remainder_byes():
    players = list(range(7))
    rounds = generate_rounds(players, 3)

    _assert_partition(rounds, players)
    for r in rounds:
        assert len(r.groups) == 2
        assert len(r.byes) == 1
    assert len(_pairs_met(rounds)) == 21


def test_generation_is_deterministic():
    players = ["p%d" % i for i in range(8)]
    first = generate_rounds(players, 4)
    second = generate_rounds(players, 4)
    assert [(r.groups, r.byes) for r in first] == [(r.groups, r.byes) for r in second]


def test_fewer_players_than_group_size():
    rounds = generate_rounds([1, 2], 3)
    assert len(rounds) == 1
    assert rounds[0].groups == []
    assert rounds[0].byes == [1, 2]


def test_empty_roster_has_no_rounds():
    assert generate_rounds([], 2) == []


def test_duplicate_players_rejected():
    with pytest.raises(InvalidInputError):
        generate_rounds([1, 2, 2, 3], 2)


def test_group_size_below_two_rejected():
    with pytest.raises(InvalidInputError):
        generate_rounds([1, 2, 3], 1)


def test_division_rounds_use_game_type_group_size():
    rounds = generate_division_rounds(list(range(6)), GameType.CUTTHROAT)
    assert all(len(g) == 3 for r in rounds for g in r.groups)

    rounds = generate_division_rounds(list(range(4)), GameType.DOUBLES)
    assert rounds[0].groups == [(0, 1, 2, 3)]
