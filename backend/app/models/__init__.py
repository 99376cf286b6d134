from app.models.disputed_score import DisputedScore
from app.models.division import Division
from app.models.game import Game
from app.models.league import COURT_COUNT, GameType, League, LeagueStatus, RankingMethod, players_per_match
from app.models.match import Match, MatchStatus
from app.models.player import Player
from app.models.registration import Registration, RegistrationStatus

__all__ = [
    "COURT_COUNT",
    "League",
    "GameType",
    "RankingMethod",
    "LeagueStatus",
    "players_per_match",
    "Division",
    "Player",
    "Registration",
    "RegistrationStatus",
    "Match",
    "MatchStatus",
    "Game",
    "DisputedScore",
]
