"""
Score Resolver

Turns reported per-game point totals into game winners, a match winner and
the two-sided confirmation / dispute lifecycle:

    SCHEDULED -> IN_PROGRESS -> COMPLETED
            \\-----------------> DISPUTED   (from any non-cancelled state)

Legality and winner determination are separate checks:
- validate_game_scores() rejects illegal input (two players at the winning
  score in one game).
- game_winner_slot() computes a winner and may legitimately find none
  (e.g. 11-10 with win-by-two).

Only player1 and player2 carry confirmation flags; players 3/4 can report
and dispute but never confirm.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Hashable, List, Mapping, Optional, Sequence, Union

from sqlmodel import Session, select

from app.models.disputed_score import DisputedScore
from app.models.game import Game
from app.models.league import GameType, League
from app.models.match import TERMINAL_STATUSES, Match, MatchStatus
from app.models.player import Player
from app.services.errors import (
    AlreadyConfirmedError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
    PreconditionFailedError,
    ScoreIntegrityViolation,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)


@dataclass
class GameScore:
    player1_score: int
    player2_score: int
    player3_score: Optional[int] = None
    game_number: Optional[int] = None  # Only used for dispute audit rows


GameInput = Union[GameScore, Mapping[str, Any]]


def as_game_score(game: GameInput) -> GameScore:
    if isinstance(game, GameScore):
        return game
    if hasattr(game, "model_dump"):
        game = game.model_dump()
    if not isinstance(game, Mapping):
        raise InvalidInputError(f"Unsupported game payload: {game!r}")
    try:
        return GameScore(
            player1_score=game["player1_score"],
            player2_score=game["player2_score"],
            player3_score=game.get("player3_score"),
            game_number=game.get("game_number"),
        )
    except KeyError as e:
        raise InvalidInputError(f"Missing score field: {e.args[0]}")


# ============================================================================
# Pure scoring rules
# ============================================================================


def is_extended_deuce(scores: Sequence[int], points_to_win: int) -> bool:
    """Two-score game played past the threshold and won by exactly two (e.g. 13-11 to 11)."""
    if len(scores) != 2:
        return False
    high, low = max(scores), min(scores)
    return low >= points_to_win - 1 and high > points_to_win and high - low == 2


def validate_game_scores(
    games: Sequence[GameInput],
    slot_count: int,
    points_to_win: int,
    win_by_two: bool = True,
) -> List[List[int]]:
    """
    Validate a batch of reported games before anything is written.

    Args:
        games: Reported games, in game order
        slot_count: Scores per game (2 for singles/doubles, 3 for cutthroat)
        points_to_win: League winning-score threshold
        win_by_two: League win-by-two flag; allows an extended deuce finish

    Returns:
        Per-game score lists trimmed to slot_count

    Raises:
        InvalidInputError: no games, missing or negative scores
        ScoreIntegrityViolation: more than one player at/above points_to_win
            (1-indexed game number in the message and on the exception)
    """
    if not games:
        raise InvalidInputError("No game scores provided")

    validated: List[List[int]] = []
    for game_number, raw in enumerate(games, start=1):
        game = as_game_score(raw)
        scores = [game.player1_score, game.player2_score]
        if slot_count == 3:
            if game.player3_score is None:
                raise InvalidInputError(f"Game {game_number}: player3_score is required for cutthroat matches")
            scores.append(game.player3_score)

        for score in scores:
            if isinstance(score, bool) or not isinstance(score, int):
                raise InvalidInputError(f"Game {game_number}: scores must be whole numbers")
            if score < 0:
                raise InvalidInputError(f"Game {game_number}: scores cannot be negative")

        at_winning_score = [s for s in scores if s >= points_to_win]
        if len(at_winning_score) > 1 and not (win_by_two and is_extended_deuce(scores, points_to_win)):
            raise ScoreIntegrityViolation(
                f"Game {game_number}: Only one player can have {points_to_win} points.",
                game_number=game_number,
            )
        validated.append(scores)
    return validated


def game_winner_slot(
    scores: Sequence[int],
    game_type: GameType,
    points_to_win: int,
    win_by_two: bool = True,
) -> Optional[int]:
    """
    0-based score slot that won the game, or None.

    CUTTHROAT: the single highest score wins, no threshold or margin.
    SINGLES/DOUBLES: score >= points_to_win and a margin of 2 when win-by-two
    is on, otherwise score >= points_to_win and strictly higher.
    """
    if GameType(game_type) == GameType.CUTTHROAT:
        top = max(scores)
        leaders = [i for i, s in enumerate(scores) if s == top]
        return leaders[0] if len(leaders) == 1 else None

    required_margin = 2 if win_by_two else 1
    for slot, score in enumerate(scores):
        other = max(s for i, s in enumerate(scores) if i != slot)
        if score >= points_to_win and score - other >= required_margin:
            return slot
    return None


def determine_match_winner(game_winners: Sequence[Optional[Hashable]]) -> Optional[Hashable]:
    """Player with the most game wins; a tie for most (or no wins) gives None."""
    counts = Counter(w for w in game_winners if w is not None)
    if not counts:
        return None
    ranked = counts.most_common()
    if len(ranked) > 1 and ranked[0][1] == ranked[1][1]:
        return None
    return ranked[0][0]


def confirmation_side(match: Match, player_id: int) -> Optional[int]:
    """1 or 2 for the confirming players, None for players 3/4."""
    if player_id == match.player1_id:
        return 1
    if player_id == match.player2_id:
        return 2
    return None


# ============================================================================
# Session-backed lifecycle
# ============================================================================


def _lock_match(session: Session, match_id: int) -> Match:
    match = session.exec(select(Match).where(Match.id == match_id).with_for_update()).first()
    if not match:
        raise NotFoundError(f"Match {match_id} not found")
    return match


def _league_for(session: Session, match: Match) -> League:
    league = session.get(League, match.league_id)
    if not league:
        raise NotFoundError(f"League {match.league_id} not found")
    return league


def submit_score(
    session: Session,
    match_id: int,
    reporter_id: int,
    games: Sequence[GameInput],
    now: Optional[datetime] = None,
) -> Match:
    """
    Record (or re-record) a match score.

    Replaces all Game rows, computes winners, resets the confirmation flags
    to the reporter's side only and moves the match to IN_PROGRESS.

    Raises:
        NotFoundError: match missing
        UnauthorizedError: reporter is not a participant
        PreconditionFailedError: match already completed / disputed / cancelled
        ConflictError: another participant's report is awaiting confirmation
        InvalidInputError / ScoreIntegrityViolation: illegal scores
    """
    try:
        match = _lock_match(session, match_id)
        if not match.is_participant(reporter_id):
            raise UnauthorizedError("You are not authorized to report scores for this match")
        if match.status in TERMINAL_STATUSES:
            raise PreconditionFailedError(f"Match {match_id} is {match.status_value}; scores can no longer be submitted")
        if match.games and match.score_reported_by != reporter_id:
            raise ConflictError(
                "Scores have already been reported by another player. Please confirm the scores instead."
            )

        league = _league_for(session, match)
        validated = validate_game_scores(
            games, len(match.score_sides()), league.points_to_win, league.win_by_two
        )

        leaders = match.score_leaders()
        new_games: List[Game] = []
        for game_number, scores in enumerate(validated, start=1):
            slot = game_winner_slot(scores, league.game_type, league.points_to_win, league.win_by_two)
            new_games.append(
                Game(
                    game_number=game_number,
                    player1_score=scores[0],
                    player2_score=scores[1],
                    player3_score=scores[2] if len(scores) > 2 else None,
                    winner_id=leaders[slot] if slot is not None else None,
                )
            )

        match.games.clear()
        session.flush()
        match.games.extend(new_games)

        match.winner_id = determine_match_winner([g.winner_id for g in new_games])
        if match.winner_id is None:
            logger.info("Match %d reported without a clear winner", match_id)
        match.score_reported_by = reporter_id
        match.score_reported_at = now or datetime.utcnow()
        match.status = MatchStatus.IN_PROGRESS
        # New games void earlier confirmations; only the reporter's side stands
        side = confirmation_side(match, reporter_id)
        match.player1_confirmed = side == 1
        match.player2_confirmed = side == 2

        session.add(match)
        session.commit()
    except Exception:
        session.rollback()
        raise

    session.refresh(match)
    logger.info("Match %d score reported by player %d (%d games)", match_id, reporter_id, len(new_games))
    return match


def confirm_score(session: Session, match_id: int, confirmer_id: int) -> Match:
    """
    Confirm the reported score for the caller's side.

    Both player1 and player2 confirmed -> COMPLETED.

    Raises:
        NotFoundError: match missing
        UnauthorizedError: confirmer is not a participant
        AlreadyConfirmedError: caller's side already confirmed
        PreconditionFailedError: players 3/4, nothing reported, or terminal match
    """
    try:
        match = _lock_match(session, match_id)
        if not match.is_participant(confirmer_id):
            raise UnauthorizedError("You are not a participant in this match")

        side = confirmation_side(match, confirmer_id)
        if side is None:
            raise PreconditionFailedError("Only player 1 and player 2 confirm match scores")
        if (side == 1 and match.player1_confirmed) or (side == 2 and match.player2_confirmed):
            raise AlreadyConfirmedError("You have already confirmed this score")
        if match.status in TERMINAL_STATUSES:
            raise PreconditionFailedError(f"Match {match_id} is {match.status_value}; it can no longer be confirmed")
        if not match.games:
            raise PreconditionFailedError("No score has been reported for this match")

        if side == 1:
            match.player1_confirmed = True
        else:
            match.player2_confirmed = True

        if match.player1_confirmed and match.player2_confirmed:
            match.status = MatchStatus.COMPLETED

        session.add(match)
        session.commit()
    except Exception:
        session.rollback()
        raise

    session.refresh(match)
    logger.info("Match %d confirmed by player %d (status %s)", match_id, confirmer_id, match.status_value)
    return match


def dispute_score(
    session: Session,
    match_id: int,
    disputer_id: int,
    games: Sequence[GameInput],
) -> List[DisputedScore]:
    """
    Record a contested score and freeze the match in DISPUTED.

    The match's Games are left untouched; one DisputedScore audit row is
    appended per disputed game.

    Raises:
        NotFoundError: match missing
        UnauthorizedError: disputer is not a participant
        PreconditionFailedError: match cancelled
        InvalidInputError / ScoreIntegrityViolation: illegal scores
    """
    try:
        match = _lock_match(session, match_id)
        if not match.is_participant(disputer_id):
            raise UnauthorizedError("You are not a participant in this match")
        if match.status == MatchStatus.CANCELLED:
            raise PreconditionFailedError(f"Match {match_id} is cancelled")

        league = _league_for(session, match)
        validated = validate_game_scores(
            games, len(match.score_sides()), league.points_to_win, league.win_by_two
        )

        records: List[DisputedScore] = []
        for index, (raw, scores) in enumerate(zip(games, validated), start=1):
            game = as_game_score(raw)
            record = DisputedScore(
                match_id=match.id,
                game_number=game.game_number or index,
                player1_score=scores[0],
                player2_score=scores[1],
                player3_score=scores[2] if len(scores) > 2 else None,
                reported_by=disputer_id,
            )
            session.add(record)
            records.append(record)

        disputer = session.get(Player, disputer_id)
        disputer_name = disputer.name if disputer else str(disputer_id)
        match.status = MatchStatus.DISPUTED
        match.score_disputed = True
        match.dispute_reason = f"Score disputed by {disputer_name}"

        session.add(match)
        session.commit()
    except Exception:
        session.rollback()
        raise

    for record in records:
        session.refresh(record)
    logger.info("Match %d disputed by player %d (%d games)", match_id, disputer_id, len(records))
    return records


def get_match_or_raise(session: Session, match_id: int) -> Match:
    match = session.get(Match, match_id)
    if not match:
        raise NotFoundError(f"Match {match_id} not found")
    return match
