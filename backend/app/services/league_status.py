"""
League status derivation from the league calendar.

Checked in order, first match wins:
    now < registration_opens                     -> UPCOMING
    registration_opens <= now <= closes          -> REGISTRATION_OPEN
    now > closes and before start_date           -> REGISTRATION_CLOSED
    start_date <= today <= end_date              -> IN_PROGRESS
    today > end_date                             -> COMPLETED

Missing registration dates skip their checks. COMPLETED and CANCELLED
leagues are never re-derived.
"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlmodel import Session, select

from app.models.league import League, LeagueStatus

logger = logging.getLogger(__name__)

FROZEN_STATUSES = (LeagueStatus.COMPLETED, LeagueStatus.CANCELLED)


def derive_status(
    now: datetime,
    registration_opens: Optional[datetime],
    registration_closes: Optional[datetime],
    start_date: date,
    end_date: date,
) -> Optional[LeagueStatus]:
    """Status implied by the calendar at `now`, or None if no rule applies."""
    today = now.date()

    if registration_opens is not None and now < registration_opens:
        return LeagueStatus.UPCOMING
    if registration_opens is not None and registration_closes is not None and now <= registration_closes:
        return LeagueStatus.REGISTRATION_OPEN
    if registration_closes is not None and now > registration_closes and today < start_date:
        return LeagueStatus.REGISTRATION_CLOSED
    if start_date <= today <= end_date:
        return LeagueStatus.IN_PROGRESS
    if today > end_date:
        return LeagueStatus.COMPLETED
    return None


def update_league_statuses(session: Session, now: Optional[datetime] = None) -> int:
    """
    Re-derive the status of every active league.

    Returns:
        Number of leagues whose status changed
    """
    now = now or datetime.utcnow()
    leagues = session.exec(
        select(League).where(League.status.notin_([s.value for s in FROZEN_STATUSES]))
    ).all()

    changed = 0
    for league in leagues:
        new_status = derive_status(
            now, league.registration_opens, league.registration_closes, league.start_date, league.end_date
        )
        if new_status is None or new_status == LeagueStatus(league.status):
            continue
        logger.info("League %d status %s -> %s", league.id, LeagueStatus(league.status).value, new_status.value)
        league.status = new_status
        session.add(league)
        changed += 1

    if changed:
        session.commit()
    return changed
