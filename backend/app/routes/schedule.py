"""
League schedule endpoints.

GET returns the persisted schedule when one exists, otherwise a preview
generated from the current confirmed roster (nothing written). POST
persists; DELETE wipes all matches so the schedule can be regenerated.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from app.database import get_session
from app.models.match import Match, MatchStatus
from app.services.errors import LeagueEngineError
from app.services.schedule_generator import (
    ScheduleResult,
    create_schedule,
    get_league_or_raise,
    list_league_matches,
    preview_schedule,
    reset_schedule,
)
from app.services.slot_allocator import PlannedMatch
from app.utils.http_errors import http_error

router = APIRouter()


class ScheduleMatch(BaseModel):
    id: Optional[int] = None  # None for previews
    division_id: int
    week_number: int
    player1_id: int
    player2_id: int
    player3_id: Optional[int] = None
    player4_id: Optional[int] = None
    court_number: Optional[int] = None
    scheduled_time: Optional[datetime] = None
    is_makeup: bool
    status: Optional[MatchStatus] = None


class ScheduleResponse(BaseModel):
    league_id: int
    generated: bool
    total_weeks: int
    projected_games: int
    scheduled_matches: List[ScheduleMatch]
    makeup_matches: List[ScheduleMatch]


class ScheduleResetResponse(BaseModel):
    league_id: int
    deleted_matches: int


def _planned_to_schedule_match(m: PlannedMatch) -> ScheduleMatch:
    return ScheduleMatch(
        division_id=m.division_id,
        week_number=m.week_number,
        player1_id=m.player1_id,
        player2_id=m.player2_id,
        player3_id=m.player3_id,
        player4_id=m.player4_id,
        court_number=m.court_number,
        scheduled_time=m.scheduled_time,
        is_makeup=m.is_makeup,
    )


def _match_to_schedule_match(m: Match) -> ScheduleMatch:
    return ScheduleMatch(
        id=m.id,
        division_id=m.division_id,
        week_number=m.week_number,
        player1_id=m.player1_id,
        player2_id=m.player2_id,
        player3_id=m.player3_id,
        player4_id=m.player4_id,
        court_number=m.court_number,
        scheduled_time=m.scheduled_time,
        is_makeup=m.is_makeup,
        status=m.status,
    )


def _persisted_response(league_id: int, matches: List[Match]) -> ScheduleResponse:
    return ScheduleResponse(
        league_id=league_id,
        generated=True,
        total_weeks=max((m.week_number for m in matches), default=0),
        projected_games=len(matches),
        scheduled_matches=[_match_to_schedule_match(m) for m in matches if not m.is_makeup],
        makeup_matches=[_match_to_schedule_match(m) for m in matches if m.is_makeup],
    )


def _preview_response(league_id: int, result: ScheduleResult) -> ScheduleResponse:
    return ScheduleResponse(
        league_id=league_id,
        generated=False,
        total_weeks=result.total_weeks,
        projected_games=result.projected_games,
        scheduled_matches=[_planned_to_schedule_match(m) for m in result.scheduled_matches],
        makeup_matches=[_planned_to_schedule_match(m) for m in result.makeup_matches],
    )


@router.get("/leagues/{league_id}/schedule", response_model=ScheduleResponse)
def get_schedule(league_id: int, session: Session = Depends(get_session)):
    """Existing schedule, or a preview from the confirmed roster"""
    try:
        get_league_or_raise(session, league_id)
        matches = list_league_matches(session, league_id)
        if matches:
            return _persisted_response(league_id, matches)
        return _preview_response(league_id, preview_schedule(session, league_id))
    except LeagueEngineError as e:
        raise http_error(e)


@router.post("/leagues/{league_id}/schedule", response_model=ScheduleResponse, status_code=201)
def generate_schedule(league_id: int, session: Session = Depends(get_session)):
    """Generate and persist the schedule; 409 if the league already has one"""
    try:
        create_schedule(session, league_id)
    except LeagueEngineError as e:
        raise http_error(e)
    return _persisted_response(league_id, list_league_matches(session, league_id))


@router.delete("/leagues/{league_id}/schedule", response_model=ScheduleResetResponse)
def delete_schedule(league_id: int, session: Session = Depends(get_session)):
    """Delete every match of the league (games and disputes included)"""
    try:
        deleted = reset_schedule(session, league_id)
    except LeagueEngineError as e:
        raise http_error(e)
    return ScheduleResetResponse(league_id=league_id, deleted_matches=deleted)
