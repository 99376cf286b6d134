"""Slot allocation onto league nights: courts, times, makeup overflow."""
from datetime import date, datetime, time

import pytest

from app.services.errors import InvalidInputError
from app.services.pairing_generator import PairingRound, generate_rounds
from app.services.slot_allocator import SlotConfig, allocate_slots, nightly_start_times, week_date


def _config(**overrides):
    fields = dict(start_date=date(2026, 1, 5), end_date=date(2026, 3, 30))
    fields.update(overrides)
    return SlotConfig(**fields)


def test_default_window_has_one_slot_per_court():
    assert nightly_start_times(_config()) == [time(18, 0)]


def test_longer_window_has_back_to_back_slots():
    config = _config(play_end_time=time(20, 30), match_duration_minutes=45)
    assert nightly_start_times(config) == [time(18, 0), time(18, 45), time(19, 30)]


def test_window_times_normalized_to_five_minutes():
    config = _config(play_start_time=time(18, 3), play_end_time=time(19, 5))
    assert nightly_start_times(config) == [time(18, 5)]


def test_non_positive_duration_rejected():
    with pytest.raises(InvalidInputError):
        nightly_start_times(_config(match_duration_minutes=0))


def test_week_date_is_weekly():
    config = _config()
    assert week_date(config, 1) == date(2026, 1, 5)
    assert week_date(config, 3) == date(2026, 1, 19)


def test_overflow_becomes_makeup():
    """Nine cutthroat players: three groups a week, two courts, one slot each."""
    rounds = generate_rounds(list(range(1, 10)), 3)
    result = allocate_slots({1: rounds}, _config())

    weeks = {r.round_number for r in rounds}
    for week in weeks:
        scheduled = [m for m in result.scheduled if m.week_number == week]
        makeup = [m for m in result.makeup if m.week_number == week]
        assert len(scheduled) == 2
        assert len(makeup) == 1
        assert sorted(m.court_number for m in scheduled) == [1, 2]
        night = week_date(_config(), week)
        assert all(m.scheduled_time == datetime.combine(night, time(18, 0)) for m in scheduled)

    assert all(m.is_makeup and m.court_number is None and m.scheduled_time is None for m in result.makeup)


def test_courts_alternate_then_time_advances():
    rounds = [PairingRound(round_number=1, groups=[(1, 2), (3, 4), (5, 6)], byes=[])]
    config = _config(play_end_time=time(20, 0))
    result = allocate_slots({1: rounds}, config)

    placed = [(m.court_number, m.scheduled_time.time()) for m in result.scheduled]
    assert placed == [(1, time(18, 0)), (2, time(18, 0)), (1, time(19, 0))]
    assert result.makeup == []


def test_divisions_fill_slots_in_order():
    rounds_a = [PairingRound(round_number=1, groups=[("a1", "a2"), ("a3", "a4")])]
    rounds_b = [PairingRound(round_number=1, groups=[("b1", "b2")])]
    result = allocate_slots({"A": rounds_a, "B": rounds_b}, _config())

    assert [m.division_id for m in result.scheduled] == ["A", "A"]
    assert [m.division_id for m in result.makeup] == ["B"]


def test_weeks_after_end_date_become_makeup():
    rounds = generate_rounds([1, 2, 3, 4], 2)  # 3 weeks
    result = allocate_slots({1: rounds}, _config(end_date=date(2026, 1, 12)))  # only 2 nights

    assert {m.week_number for m in result.scheduled} == {1, 2}
    assert {m.week_number for m in result.makeup} == {3}
    assert len(result.makeup) == 2


def test_byes_never_become_matches():
    rounds = generate_rounds([1, 2, 3], 2)
    result = allocate_slots({1: rounds}, _config())
    all_matches = result.scheduled + result.makeup
    assert len(all_matches) == 3
    assert all(m.player1_id is not None and m.player2_id is not None for m in all_matches)
