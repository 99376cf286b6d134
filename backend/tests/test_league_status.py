"""League status derivation from registration and play dates."""
from datetime import date, datetime

import pytest
from sqlmodel import Session

from app.models.league import GameType, League, LeagueStatus
from app.services.league_status import derive_status, update_league_statuses

OPENS = datetime(2026, 1, 1, 9, 0)
CLOSES = datetime(2026, 1, 20, 23, 59)
START = date(2026, 2, 2)
END = date(2026, 4, 27)


@pytest.mark.parametrize(
    "now,expected",
    [
        (datetime(2025, 12, 31, 12, 0), LeagueStatus.UPCOMING),
        (datetime(2026, 1, 1, 9, 0), LeagueStatus.REGISTRATION_OPEN),
        (datetime(2026, 1, 20, 23, 0), LeagueStatus.REGISTRATION_OPEN),
        (datetime(2026, 1, 25, 12, 0), LeagueStatus.REGISTRATION_CLOSED),
        (datetime(2026, 2, 2, 18, 0), LeagueStatus.IN_PROGRESS),
        (datetime(2026, 4, 27, 21, 0), LeagueStatus.IN_PROGRESS),
        (datetime(2026, 4, 28, 8, 0), LeagueStatus.COMPLETED),
    ],
)
def test_derive_status(now, expected):
    assert derive_status(now, OPENS, CLOSES, START, END) == expected


def test_derive_status_without_registration_window():
    assert derive_status(datetime(2026, 1, 10), None, None, START, END) is None
    assert derive_status(datetime(2026, 3, 1), None, None, START, END) == LeagueStatus.IN_PROGRESS


def _league(session: Session, name: str, status: LeagueStatus) -> League:
    league = League(
        name=name,
        game_type=GameType.SINGLES,
        registration_opens=OPENS,
        registration_closes=CLOSES,
        start_date=START,
        end_date=END,
        status=status,
    )
    session.add(league)
    session.commit()
    session.refresh(league)
    return league


def test_update_league_statuses(session: Session):
    stale = _league(session, "Stale", LeagueStatus.UPCOMING)
    current = _league(session, "Current", LeagueStatus.IN_PROGRESS)
    cancelled = _league(session, "Cancelled", LeagueStatus.CANCELLED)

    changed = update_league_statuses(session, now=datetime(2026, 3, 1, 12, 0))

    assert changed == 1
    session.refresh(stale)
    session.refresh(current)
    session.refresh(cancelled)
    assert stale.status == LeagueStatus.IN_PROGRESS
    assert current.status == LeagueStatus.IN_PROGRESS
    assert cancelled.status == LeagueStatus.CANCELLED


def test_completed_leagues_are_left_alone(session: Session):
    done = _league(session, "Done", LeagueStatus.COMPLETED)

    assert update_league_statuses(session, now=datetime(2026, 1, 5)) == 0
    session.refresh(done)
    assert done.status == LeagueStatus.COMPLETED
