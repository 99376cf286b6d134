"""
Makeup match placement.

Makeup matches are generated without a court or time. An admin later drops
one onto a free court slot; the match keeps is_makeup=True.
"""

import logging
from datetime import datetime

from sqlmodel import Session, func, select

from app.models.league import COURT_COUNT
from app.models.match import Match, MatchStatus
from app.services.errors import ConflictError, InvalidInputError, NotFoundError, PreconditionFailedError
from app.utils.sql import scalar_int

logger = logging.getLogger(__name__)


def slot_occupied(session: Session, court_number: int, scheduled_time: datetime, exclude_match_id: int) -> bool:
    """True if any non-cancelled match (any league) holds this court at this time."""
    count = session.exec(
        select(func.count(Match.id)).where(
            Match.court_number == court_number,
            Match.scheduled_time == scheduled_time,
            Match.status != MatchStatus.CANCELLED.value,
            Match.id != exclude_match_id,
        )
    ).one()
    return scalar_int(count) > 0


def place_makeup_match(session: Session, match_id: int, court_number: int, scheduled_time: datetime) -> Match:
    """
    Assign a court and time to a makeup match.

    Raises:
        NotFoundError: match missing
        PreconditionFailedError: not a makeup match, or no longer SCHEDULED
        InvalidInputError: court outside 1..COURT_COUNT
        ConflictError: the court is already taken at that time
    """
    try:
        match = session.exec(select(Match).where(Match.id == match_id).with_for_update()).first()
        if not match:
            raise NotFoundError(f"Match {match_id} not found")
        if not match.is_makeup:
            raise PreconditionFailedError(f"Match {match_id} is not a makeup match")
        if match.status != MatchStatus.SCHEDULED:
            raise PreconditionFailedError(f"Match {match_id} is {match.status_value}; only scheduled matches can be placed")
        if not 1 <= court_number <= COURT_COUNT:
            raise InvalidInputError(f"Court number must be between 1 and {COURT_COUNT}, got {court_number}")
        if slot_occupied(session, court_number, scheduled_time, match_id):
            raise ConflictError(f"Court {court_number} is already booked at {scheduled_time.isoformat()}")

        match.court_number = court_number
        match.scheduled_time = scheduled_time
        session.add(match)
        session.commit()
    except Exception:
        session.rollback()
        raise

    session.refresh(match)
    logger.info("Makeup match %d placed on court %d at %s", match_id, court_number, scheduled_time.isoformat())
    return match
