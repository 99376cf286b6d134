from datetime import date, datetime, time
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from sqlmodel import Session, select

from app.database import get_session
from app.models.division import Division
from app.models.league import GameType, League, LeagueStatus, RankingMethod
from app.models.player import Player
from app.models.registration import Registration, RegistrationStatus
from app.services.league_status import update_league_statuses
from app.services.schedule_generator import registration_has_matches

router = APIRouter()


# ============================================================================
# Leagues
# ============================================================================


class LeagueCreate(BaseModel):
    name: str
    game_type: GameType
    ranking_method: RankingMethod = RankingMethod.BY_WINS
    points_to_win: int = 11
    win_by_two: bool = True
    match_duration_minutes: int = 60
    play_start_time: time = time(18, 0)
    play_end_time: time = time(19, 0)
    registration_opens: Optional[datetime] = None
    registration_closes: Optional[datetime] = None
    start_date: date
    end_date: date

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()

    @field_validator("points_to_win", "match_duration_minutes")
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @model_validator(mode="after")
    def validate_ranges(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must be >= start_date")
        if self.play_end_time <= self.play_start_time:
            raise ValueError("play_end_time must be after play_start_time")
        if self.registration_opens and self.registration_closes and self.registration_closes < self.registration_opens:
            raise ValueError("registration_closes must be >= registration_opens")
        return self


class LeagueResponse(BaseModel):
    id: int
    name: str
    game_type: GameType
    ranking_method: RankingMethod
    points_to_win: int
    win_by_two: bool
    match_duration_minutes: int
    play_start_time: time
    play_end_time: time
    registration_opens: Optional[datetime]
    registration_closes: Optional[datetime]
    start_date: date
    end_date: date
    status: LeagueStatus
    schedule_generated: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StatusUpdateResponse(BaseModel):
    message: str
    updated_count: int


def _get_league(session: Session, league_id: int) -> League:
    league = session.get(League, league_id)
    if not league:
        raise HTTPException(status_code=404, detail="League not found")
    return league


@router.get("/leagues", response_model=List[LeagueResponse])
def list_leagues(session: Session = Depends(get_session)):
    """List all leagues, newest start date first"""
    return session.exec(select(League).order_by(League.start_date.desc(), League.id)).all()


@router.post("/leagues", response_model=LeagueResponse, status_code=201)
def create_league(league_data: LeagueCreate, session: Session = Depends(get_session)):
    league = League(**league_data.model_dump())
    session.add(league)
    session.commit()
    session.refresh(league)
    return league


@router.post("/leagues/update-statuses", response_model=StatusUpdateResponse)
def update_statuses(session: Session = Depends(get_session)):
    """Re-derive league statuses from their calendars (cron or manual trigger)"""
    updated = update_league_statuses(session)
    return StatusUpdateResponse(message=f"Updated {updated} league statuses", updated_count=updated)


@router.get("/leagues/{league_id}", response_model=LeagueResponse)
def get_league(league_id: int, session: Session = Depends(get_session)):
    return _get_league(session, league_id)


# ============================================================================
# Divisions
# ============================================================================


class DivisionCreate(BaseModel):
    name: str
    sort_order: int = 0


class DivisionResponse(BaseModel):
    id: int
    league_id: int
    name: str
    sort_order: int

    model_config = ConfigDict(from_attributes=True)


@router.get("/leagues/{league_id}/divisions", response_model=List[DivisionResponse])
def list_divisions(league_id: int, session: Session = Depends(get_session)):
    _get_league(session, league_id)
    return session.exec(
        select(Division).where(Division.league_id == league_id).order_by(Division.sort_order, Division.id)
    ).all()


@router.post("/leagues/{league_id}/divisions", response_model=DivisionResponse, status_code=201)
def create_division(league_id: int, division_data: DivisionCreate, session: Session = Depends(get_session)):
    _get_league(session, league_id)
    existing = session.exec(
        select(Division).where(Division.league_id == league_id, Division.name == division_data.name)
    ).first()
    if existing:
        raise HTTPException(status_code=409, detail=f"Division '{division_data.name}' already exists in this league")

    division = Division(league_id=league_id, **division_data.model_dump())
    session.add(division)
    session.commit()
    session.refresh(division)
    return division


# ============================================================================
# Players
# ============================================================================


class PlayerCreate(BaseModel):
    name: str
    email: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()


class PlayerResponse(BaseModel):
    id: int
    name: str
    email: Optional[str]

    model_config = ConfigDict(from_attributes=True)


@router.post("/players", response_model=PlayerResponse, status_code=201)
def create_player(player_data: PlayerCreate, session: Session = Depends(get_session)):
    player = Player(**player_data.model_dump())
    session.add(player)
    session.commit()
    session.refresh(player)
    return player


@router.get("/players/{player_id}", response_model=PlayerResponse)
def get_player(player_id: int, session: Session = Depends(get_session)):
    player = session.get(Player, player_id)
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")
    return player


# ============================================================================
# Registrations
# ============================================================================


class RegistrationCreate(BaseModel):
    player_id: int
    division_id: int
    status: RegistrationStatus = RegistrationStatus.PENDING


class RegistrationUpdate(BaseModel):
    status: Optional[RegistrationStatus] = None
    division_id: Optional[int] = None


class RegistrationResponse(BaseModel):
    id: int
    league_id: int
    division_id: int
    player_id: int
    status: RegistrationStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


def _check_division(session: Session, league_id: int, division_id: int) -> Division:
    division = session.get(Division, division_id)
    if not division or division.league_id != league_id:
        raise HTTPException(status_code=400, detail=f"Division {division_id} does not belong to league {league_id}")
    return division


@router.get("/leagues/{league_id}/registrations", response_model=List[RegistrationResponse])
def list_registrations(league_id: int, session: Session = Depends(get_session)):
    _get_league(session, league_id)
    return session.exec(
        select(Registration)
        .where(Registration.league_id == league_id)
        .order_by(Registration.created_at, Registration.id)
    ).all()


@router.post("/leagues/{league_id}/registrations", response_model=RegistrationResponse, status_code=201)
def register_player(league_id: int, registration_data: RegistrationCreate, session: Session = Depends(get_session)):
    """Register a player into one division of a league (one registration per league)"""
    _get_league(session, league_id)
    _check_division(session, league_id, registration_data.division_id)
    if not session.get(Player, registration_data.player_id):
        raise HTTPException(status_code=404, detail="Player not found")

    existing = session.exec(
        select(Registration).where(
            Registration.league_id == league_id, Registration.player_id == registration_data.player_id
        )
    ).first()
    if existing:
        raise HTTPException(status_code=409, detail="Player is already registered for this league")

    registration = Registration(league_id=league_id, **registration_data.model_dump())
    session.add(registration)
    session.commit()
    session.refresh(registration)
    return registration


@router.patch("/registrations/{registration_id}", response_model=RegistrationResponse)
def update_registration(
    registration_id: int, registration_data: RegistrationUpdate, session: Session = Depends(get_session)
):
    """Change registration status or division; the division is fixed once matches exist"""
    registration = session.get(Registration, registration_id)
    if not registration:
        raise HTTPException(status_code=404, detail="Registration not found")

    update_data = registration_data.model_dump(exclude_unset=True)
    new_division = update_data.get("division_id")
    if new_division is not None and new_division != registration.division_id:
        _check_division(session, registration.league_id, new_division)
        if registration_has_matches(session, registration.league_id, registration.player_id):
            raise HTTPException(status_code=409, detail="Player already has scheduled matches in this division")

    for key, value in update_data.items():
        if value is not None:
            setattr(registration, key, value)

    session.add(registration)
    session.commit()
    session.refresh(registration)
    return registration


@router.delete("/registrations/{registration_id}", status_code=204)
def withdraw_registration(registration_id: int, session: Session = Depends(get_session)):
    """Withdraw a registration; refused once the player appears in a match"""
    registration = session.get(Registration, registration_id)
    if not registration:
        raise HTTPException(status_code=404, detail="Registration not found")
    if registration_has_matches(session, registration.league_id, registration.player_id):
        raise HTTPException(status_code=409, detail="Cannot withdraw: player already has matches in this league")

    session.delete(registration)
    session.commit()
    return Response(status_code=204)
