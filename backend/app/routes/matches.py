"""
Match score lifecycle: report, confirm, dispute, and makeup placement.

The acting player is identified by player_id in the request body.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from sqlmodel import Session

from app.database import get_session
from app.models.match import Match, MatchStatus
from app.services.errors import LeagueEngineError
from app.services.makeup_placement import place_makeup_match
from app.services.score_resolver import confirm_score, dispute_score, get_match_or_raise, submit_score
from app.utils.http_errors import http_error

router = APIRouter()


class GameScoreIn(BaseModel):
    player1_score: int
    player2_score: int
    player3_score: Optional[int] = None
    game_number: Optional[int] = None


class ScoreSubmission(BaseModel):
    player_id: int
    games: List[GameScoreIn]


class ScoreConfirmation(BaseModel):
    player_id: int


class MakeupPlacement(BaseModel):
    court_number: int
    scheduled_time: datetime


class GameOut(BaseModel):
    game_number: int
    player1_score: int
    player2_score: int
    player3_score: Optional[int] = None
    winner_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class DisputedScoreOut(BaseModel):
    id: int
    game_number: int
    player1_score: int
    player2_score: int
    player3_score: Optional[int] = None
    reported_by: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MatchResponse(BaseModel):
    id: int
    league_id: int
    division_id: int
    player1_id: int
    player2_id: int
    player3_id: Optional[int] = None
    player4_id: Optional[int] = None
    court_number: Optional[int] = None
    scheduled_time: Optional[datetime] = None
    week_number: int
    is_makeup: bool
    status: MatchStatus
    player1_confirmed: bool
    player2_confirmed: bool
    winner_id: Optional[int] = None
    score_reported_by: Optional[int] = None
    score_reported_at: Optional[datetime] = None
    score_disputed: bool
    dispute_reason: Optional[str] = None
    games: List[GameOut] = []
    disputed_scores: List[DisputedScoreOut] = []

    model_config = ConfigDict(from_attributes=True)


def _to_response(match: Match) -> MatchResponse:
    return MatchResponse.model_validate(match)


@router.get("/matches/{match_id}", response_model=MatchResponse)
def get_match(match_id: int, session: Session = Depends(get_session)):
    try:
        return _to_response(get_match_or_raise(session, match_id))
    except LeagueEngineError as e:
        raise http_error(e)


@router.post("/matches/{match_id}/score", response_model=MatchResponse)
def report_score(match_id: int, payload: ScoreSubmission, session: Session = Depends(get_session)):
    """Report (or re-report) game scores; the reporter's side counts as confirmed"""
    try:
        match = submit_score(session, match_id, payload.player_id, payload.games)
    except LeagueEngineError as e:
        raise http_error(e)
    return _to_response(match)


@router.post("/matches/{match_id}/confirm", response_model=MatchResponse)
def confirm_match_score(match_id: int, payload: ScoreConfirmation, session: Session = Depends(get_session)):
    try:
        match = confirm_score(session, match_id, payload.player_id)
    except LeagueEngineError as e:
        raise http_error(e)
    return _to_response(match)


@router.post("/matches/{match_id}/dispute", response_model=MatchResponse)
def dispute_match_score(match_id: int, payload: ScoreSubmission, session: Session = Depends(get_session)):
    """Record the disputing player's version of the games; reported games stay as they are"""
    try:
        dispute_score(session, match_id, payload.player_id, payload.games)
        match = get_match_or_raise(session, match_id)
        session.refresh(match)
    except LeagueEngineError as e:
        raise http_error(e)
    return _to_response(match)


@router.patch("/matches/{match_id}/placement", response_model=MatchResponse)
def place_makeup(match_id: int, payload: MakeupPlacement, session: Session = Depends(get_session)):
    """Put a makeup match on a court"""
    try:
        match = place_makeup_match(session, match_id, payload.court_number, payload.scheduled_time)
    except LeagueEngineError as e:
        raise http_error(e)
    return _to_response(match)
