from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from app.database import get_session
from app.models.division import Division
from app.models.league import League, RankingMethod
from app.services.errors import LeagueEngineError
from app.services.standings import StandingsRow, division_standings, league_standings
from app.utils.http_errors import http_error

router = APIRouter()


class StandingsRowOut(BaseModel):
    rank: int
    player_id: int
    player_name: str
    matches: int
    wins: int
    losses: int
    win_percentage: float
    games_won: int
    games_lost: int
    points_for: int
    points_against: int


class DivisionStandingsResponse(BaseModel):
    division_id: int
    division_name: str
    ranking_method: RankingMethod
    standings: List[StandingsRowOut]


class LeagueStandingsResponse(BaseModel):
    league_id: int
    divisions: List[DivisionStandingsResponse]


def _division_response(division: Division, ranking_method: RankingMethod, rows: List[StandingsRow]):
    return DivisionStandingsResponse(
        division_id=division.id,
        division_name=division.name,
        ranking_method=ranking_method,
        standings=[StandingsRowOut(**row.to_dict()) for row in rows],
    )


@router.get("/divisions/{division_id}/standings", response_model=DivisionStandingsResponse)
def get_division_standings(division_id: int, session: Session = Depends(get_session)):
    """Standings computed from every reported match of the division"""
    try:
        rows = division_standings(session, division_id)
    except LeagueEngineError as e:
        raise http_error(e)
    division = session.get(Division, division_id)
    league = session.get(League, division.league_id)
    return _division_response(division, league.ranking_method, rows)


@router.get("/leagues/{league_id}/standings", response_model=LeagueStandingsResponse)
def get_league_standings(league_id: int, session: Session = Depends(get_session)):
    try:
        per_division = league_standings(session, league_id)
    except LeagueEngineError as e:
        raise http_error(e)
    league = session.get(League, league_id)
    return LeagueStandingsResponse(
        league_id=league_id,
        divisions=[_division_response(d, league.ranking_method, rows) for d, rows in per_division],
    )
