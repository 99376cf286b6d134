"""
League engine error kinds.

Services raise these; routes translate them to HTTP status codes.
Validation always runs before any mutation, so a raised error means
nothing was written.
"""

from typing import Optional


class LeagueEngineError(Exception):
    """Base exception for league engine errors"""

    pass


class InvalidInputError(LeagueEngineError):
    """Malformed or incomplete score / roster data"""

    pass


class ScoreIntegrityViolation(InvalidInputError):
    """More than one player reached the winning score in a single game"""

    def __init__(self, message: str, game_number: Optional[int] = None):
        super().__init__(message)
        self.game_number = game_number


class PreconditionFailedError(LeagueEngineError):
    """Operation not allowed in the current state"""

    pass


class ConflictError(PreconditionFailedError):
    """Another participant's unconfirmed report (or slot occupant) is in the way"""

    pass


class AlreadyConfirmedError(PreconditionFailedError):
    """The caller's side has already confirmed this score"""

    pass


class ScheduleAlreadyExistsError(PreconditionFailedError):
    """Matches already exist for the league"""

    pass


class UnauthorizedError(LeagueEngineError):
    """Caller is not a participant of the match"""

    pass


class NotFoundError(LeagueEngineError):
    """Referenced league / division / match does not exist"""

    pass
