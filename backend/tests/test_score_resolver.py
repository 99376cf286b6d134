"""Score legality, winner rules and the report/confirm/dispute lifecycle."""
from datetime import datetime

import pytest
from sqlmodel import Session, select

from app.models.disputed_score import DisputedScore
from app.models.game import Game
from app.models.league import GameType
from app.models.match import Match, MatchStatus
from app.models.player import Player
from app.services.errors import (
    AlreadyConfirmedError,
    ConflictError,
    InvalidInputError,
    PreconditionFailedError,
    ScoreIntegrityViolation,
    UnauthorizedError,
)
from app.services.score_resolver import (
    GameScore,
    confirm_score,
    determine_match_winner,
    dispute_score,
    game_winner_slot,
    is_extended_deuce,
    submit_score,
    validate_game_scores,
)


def _games(*pairs):
    return [GameScore(*scores) for scores in pairs]


# ============================================================================
# Pure rules
# ============================================================================


def test_integrity_violation_names_game():
    with pytest.raises(ScoreIntegrityViolation) as exc:
        validate_game_scores(_games((11, 9), (11, 11)), 2, 11)
    assert exc.value.game_number == 2
    assert str(exc.value) == "Game 2: Only one player can have 11 points."


def test_integrity_violation_is_invalid_input():
    assert issubclass(ScoreIntegrityViolation, InvalidInputError)


def test_extended_deuce_allowed_with_win_by_two():
    assert is_extended_deuce([13, 11], 11)
    assert validate_game_scores(_games((13, 11)), 2, 11, win_by_two=True) == [[13, 11]]


def test_extended_deuce_rejected_without_win_by_two():
    with pytest.raises(ScoreIntegrityViolation):
        validate_game_scores(_games((13, 11)), 2, 11, win_by_two=False)


def test_extended_deuce_must_be_exactly_two():
    assert not is_extended_deuce([14, 11], 11)
    with pytest.raises(ScoreIntegrityViolation):
        validate_game_scores(_games((14, 11)), 2, 11)


def test_cutthroat_requires_third_score():
    with pytest.raises(InvalidInputError):
        validate_game_scores(_games((11, 4)), 3, 11)


def test_negative_scores_rejected():
    with pytest.raises(InvalidInputError):
        validate_game_scores(_games((11, -1)), 2, 11)


def test_no_games_rejected():
    with pytest.raises(InvalidInputError):
        validate_game_scores([], 2, 11)


def test_mapping_payloads_accepted():
    assert validate_game_scores([{"player1_score": 4, "player2_score": 11}], 2, 11) == [[4, 11]]


def test_win_by_two_game_winner():
    assert game_winner_slot([11, 10], GameType.SINGLES, 11, win_by_two=True) is None
    assert game_winner_slot([11, 9], GameType.SINGLES, 11, win_by_two=True) == 0
    assert game_winner_slot([10, 12], GameType.SINGLES, 11, win_by_two=True) == 1


def test_game_winner_without_win_by_two():
    assert game_winner_slot([11, 10], GameType.SINGLES, 11, win_by_two=False) == 0
    assert game_winner_slot([9, 7], GameType.SINGLES, 11, win_by_two=False) is None


def test_cutthroat_game_winner_is_unique_high_score():
    assert game_winner_slot([5, 11, 3], GameType.CUTTHROAT, 11) == 1
    assert game_winner_slot([8, 8, 3], GameType.CUTTHROAT, 11) is None


def test_match_winner_needs_unique_most_game_wins():
    assert determine_match_winner([1, 2, 1]) == 1
    assert determine_match_winner([1, 2]) is None
    assert determine_match_winner([None, None]) is None
    assert determine_match_winner([None, 2]) == 2


# ============================================================================
# Lifecycle against the database
# ============================================================================


def _make_match(session: Session, league, division, players) -> Match:
    slots = {"player%d_id" % (i + 1): p.id for i, p in enumerate(players)}
    match = Match(
        league_id=league.id,
        division_id=division.id,
        week_number=1,
        court_number=1,
        scheduled_time=datetime(2026, 1, 5, 18, 0),
        status=MatchStatus.SCHEDULED,
        **slots,
    )
    session.add(match)
    session.commit()
    session.refresh(match)
    return match


@pytest.fixture
def singles_match(session: Session, make_league):
    league, division, players = make_league(["Alice", "Bob"])
    match = _make_match(session, league, division, players)
    return match, players


def test_submit_sets_reporter_flag_and_winner(session: Session, singles_match):
    match, (alice, bob) = singles_match

    updated = submit_score(session, match.id, alice.id, _games((11, 5), (11, 7)))

    assert updated.status == MatchStatus.IN_PROGRESS
    assert updated.player1_confirmed is True
    assert updated.player2_confirmed is False
    assert updated.winner_id == alice.id
    assert updated.score_reported_by == alice.id
    assert updated.score_reported_at is not None
    assert [g.winner_id for g in updated.games] == [alice.id, alice.id]


def test_confirm_completes_match(session: Session, singles_match):
    match, (alice, bob) = singles_match
    submit_score(session, match.id, alice.id, _games((11, 5), (7, 11), (11, 9)))

    confirmed = confirm_score(session, match.id, bob.id)

    assert confirmed.status == MatchStatus.COMPLETED
    assert confirmed.player1_confirmed and confirmed.player2_confirmed
    assert confirmed.winner_id == alice.id


def test_reporter_cannot_confirm_twice(session: Session, singles_match):
    match, (alice, _) = singles_match
    submit_score(session, match.id, alice.id, _games((11, 5)))

    with pytest.raises(AlreadyConfirmedError):
        confirm_score(session, match.id, alice.id)


def test_confirm_without_report_refused(session: Session, singles_match):
    match, (_, bob) = singles_match
    with pytest.raises(PreconditionFailedError):
        confirm_score(session, match.id, bob.id)


def test_other_reporter_conflicts(session: Session, singles_match):
    match, (alice, bob) = singles_match
    submit_score(session, match.id, alice.id, _games((11, 5)))

    with pytest.raises(ConflictError) as exc:
        submit_score(session, match.id, bob.id, _games((5, 11)))
    assert "Please confirm the scores instead" in str(exc.value)


def test_reporter_can_resubmit(session: Session, singles_match):
    match, (alice, _) = singles_match
    submit_score(session, match.id, alice.id, _games((11, 5), (11, 7)))

    updated = submit_score(session, match.id, alice.id, _games((11, 5), (6, 11), (11, 8)))

    games = session.exec(select(Game).where(Game.match_id == match.id).order_by(Game.game_number)).all()
    assert [g.game_number for g in games] == [1, 2, 3]
    assert updated.winner_id == alice.id


def test_non_participant_unauthorized(session: Session, singles_match):
    match, _ = singles_match
    outsider = Player(name="Eve")
    session.add(outsider)
    session.commit()
    session.refresh(outsider)

    with pytest.raises(UnauthorizedError):
        submit_score(session, match.id, outsider.id, _games((11, 5)))
    with pytest.raises(UnauthorizedError):
        confirm_score(session, match.id, outsider.id)


def test_illegal_score_writes_nothing(session: Session, singles_match):
    match, (alice, _) = singles_match

    with pytest.raises(ScoreIntegrityViolation):
        submit_score(session, match.id, alice.id, _games((11, 9), (11, 11)))

    assert session.exec(select(Game).where(Game.match_id == match.id)).all() == []
    session.refresh(match)
    assert match.status == MatchStatus.SCHEDULED


def test_completed_match_rejects_new_scores(session: Session, singles_match):
    match, (alice, bob) = singles_match
    submit_score(session, match.id, alice.id, _games((11, 5)))
    confirm_score(session, match.id, bob.id)

    with pytest.raises(PreconditionFailedError):
        submit_score(session, match.id, alice.id, _games((11, 3)))


def test_dispute_keeps_games_and_records_audit(session: Session, singles_match):
    match, (alice, bob) = singles_match
    submit_score(session, match.id, alice.id, _games((11, 5), (11, 7)))

    records = dispute_score(session, match.id, bob.id, _games((5, 11), (7, 11)))

    assert len(records) == 2
    assert [r.reported_by for r in records] == [bob.id, bob.id]
    assert [(r.player1_score, r.player2_score) for r in records] == [(5, 11), (7, 11)]

    games = session.exec(select(Game).where(Game.match_id == match.id).order_by(Game.game_number)).all()
    assert [(g.player1_score, g.player2_score) for g in games] == [(11, 5), (11, 7)]

    session.refresh(match)
    assert match.status == MatchStatus.DISPUTED
    assert match.score_disputed is True
    assert match.dispute_reason == "Score disputed by Bob"

    audit = session.exec(select(DisputedScore).where(DisputedScore.match_id == match.id)).all()
    assert len(audit) == 2


def test_disputed_match_cannot_be_confirmed(session: Session, singles_match):
    match, (alice, bob) = singles_match
    submit_score(session, match.id, alice.id, _games((11, 5)))
    dispute_score(session, match.id, bob.id, _games((5, 11)))

    with pytest.raises(PreconditionFailedError):
        confirm_score(session, match.id, bob.id)


def test_doubles_partner_reports_without_confirming(session: Session, make_league):
    league, division, players = make_league(["P1", "P2", "P3", "P4"], game_type=GameType.DOUBLES)
    match = _make_match(session, league, division, players)
    p1, p2, p3, p4 = players

    updated = submit_score(session, match.id, p3.id, _games((11, 6), (11, 8)))

    assert updated.status == MatchStatus.IN_PROGRESS
    assert updated.player1_confirmed is False
    assert updated.player2_confirmed is False
    assert updated.winner_id == p1.id  # side (p1, p3) credited to p1

    with pytest.raises(PreconditionFailedError):
        confirm_score(session, match.id, p4.id)

    confirm_score(session, match.id, p1.id)
    completed = confirm_score(session, match.id, p2.id)
    assert completed.status == MatchStatus.COMPLETED


def test_cutthroat_scores_three_slots(session: Session, make_league):
    league, division, players = make_league(["A", "B", "C"], game_type=GameType.CUTTHROAT)
    match = _make_match(session, league, division, players)

    updated = submit_score(
        session,
        match.id,
        players[0].id,
        [GameScore(4, 11, 7), GameScore(11, 6, 2), GameScore(3, 11, 9)],
    )

    assert updated.winner_id == players[1].id
    assert [g.player3_score for g in updated.games] == [7, 2, 9]


def test_resubmit_voids_earlier_confirmation(session: Session, make_league):
    league, division, players = make_league(["A", "B", "C"], game_type=GameType.CUTTHROAT)
    match = _make_match(session, league, division, players)
    p1, p2, p3 = players

    submit_score(session, match.id, p3.id, [GameScore(11, 5, 3)])
    confirmed = confirm_score(session, match.id, p1.id)
    assert confirmed.player1_confirmed is True

    rewritten = submit_score(session, match.id, p3.id, [GameScore(3, 5, 11)])
    assert rewritten.player1_confirmed is False
    assert rewritten.player2_confirmed is False
    assert rewritten.winner_id == p3.id

    after_p2 = confirm_score(session, match.id, p2.id)
    assert after_p2.status == MatchStatus.IN_PROGRESS
    assert after_p2.player1_confirmed is False

    completed = confirm_score(session, match.id, p1.id)
    assert completed.status == MatchStatus.COMPLETED


def test_resubmit_by_player1_keeps_only_own_flag(session: Session, make_league):
    league, division, players = make_league(["P1", "P2", "P3", "P4"], game_type=GameType.DOUBLES)
    match = _make_match(session, league, division, players)
    p1 = players[0]

    submit_score(session, match.id, p1.id, _games((11, 6)))
    updated = submit_score(session, match.id, p1.id, _games((11, 6), (11, 9)))

    assert updated.player1_confirmed is True
    assert updated.player2_confirmed is False
    assert updated.status == MatchStatus.IN_PROGRESS
