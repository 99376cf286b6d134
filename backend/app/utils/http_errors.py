"""
Translate league engine errors to HTTPException.

400 invalid input, 403 not a participant, 404 missing entity,
409 state precondition (already scheduled, already confirmed, slot taken).
"""
from fastapi import HTTPException

from app.services.errors import (
    InvalidInputError,
    LeagueEngineError,
    NotFoundError,
    PreconditionFailedError,
    ScoreIntegrityViolation,
    UnauthorizedError,
)


def http_error(e: LeagueEngineError) -> HTTPException:
    if isinstance(e, ScoreIntegrityViolation):
        return HTTPException(status_code=400, detail={"message": str(e), "game_number": e.game_number})
    if isinstance(e, InvalidInputError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, UnauthorizedError):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, PreconditionFailedError):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))
