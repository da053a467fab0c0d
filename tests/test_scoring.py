"""
Tests for match scoring, re-scoring and the points ledger.
"""

import pytest
from sqlalchemy.exc import SQLAlchemyError

from proace.exceptions import (
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from proace.models import LedgerReason, MatchStatus, PointsLedgerEntry, Prediction
from proace.services import scoring_service
from proace.utils.scoring import count_correct_fields, score_prediction


def _ledger_for_match(match_id):
    return (
        PointsLedgerEntry.query.filter_by(match_id=match_id)
        .order_by(PointsLedgerEntry.id)
        .all()
    )


def _points_earned_for_match(match_id):
    return sum(
        p.points_earned or 0 for p in Prediction.query.filter_by(match_id=match_id)
    )


class TestScorePrediction:
    """Tests for the per-prediction scoring rules"""

    def test_both_correct(self, completed_match, user_factory, prediction_factory):
        match = completed_match(toss_winner_index=1, match_winner_index=1)
        prediction = prediction_factory(
            user_factory(), match, toss_winner=match.team1, match_winner=match.team1
        )

        awards = score_prediction(prediction, match)

        assert awards == [
            (1, LedgerReason.CORRECT_TOSS),
            (1, LedgerReason.CORRECT_MATCH),
        ]
        assert count_correct_fields(prediction, match) == 2

    def test_null_outcome_never_scores(
        self, match_factory, team_factory, user_factory, prediction_factory
    ):
        team1, team2 = team_factory(), team_factory()
        match = match_factory(
            team1=team1, team2=team2, status=MatchStatus.COMPLETED, match_winner=team1
        )
        # No toss pick and no toss result must not count as a match
        prediction = prediction_factory(user_factory(), match, match_winner=team2)

        assert score_prediction(prediction, match) == []


class TestCalculatePoints:
    """Tests for scoring a completed match"""

    def test_toss_correct_match_wrong(
        self, completed_match, user_factory, prediction_factory
    ):
        match = completed_match(toss_winner_index=1, match_winner_index=2)
        user = user_factory()
        prediction = prediction_factory(
            user, match, toss_winner=match.team1, match_winner=match.team1
        )

        summary = scoring_service.calculate_points(match.id)

        assert summary == {"matchId": match.id, "predictionsScored": 1, "pointsAwarded": 1}
        assert prediction.points_earned == 1
        assert user.points == 1

        entries = _ledger_for_match(match.id)
        assert len(entries) == 1
        assert entries[0].points == 1
        assert entries[0].reason == LedgerReason.CORRECT_TOSS
        assert entries[0].user_id == user.id

    def test_scores_every_prediction(
        self, completed_match, user_factory, prediction_factory
    ):
        match = completed_match(toss_winner_index=1, match_winner_index=1)
        perfect, wrong = user_factory(), user_factory()
        prediction_factory(
            perfect, match, toss_winner=match.team1, match_winner=match.team1
        )
        prediction_factory(wrong, match, toss_winner=match.team2, match_winner=match.team2)

        summary = scoring_service.calculate_points(match.id)

        assert summary["predictionsScored"] == 2
        assert summary["pointsAwarded"] == 2
        assert perfect.points == 2
        assert wrong.points == 0
        assert all(0 <= p.points_earned <= 2 for p in match.predictions)

    def test_rescore_does_not_double_credit(
        self, completed_match, user_factory, prediction_factory
    ):
        match = completed_match(toss_winner_index=1, match_winner_index=1)
        user = user_factory()
        prediction_factory(user, match, toss_winner=match.team1, match_winner=match.team1)

        scoring_service.calculate_points(match.id)
        scoring_service.calculate_points(match.id)
        scoring_service.rescore_match(match.id)

        assert user.points == 2
        assert PointsLedgerEntry.total_for_user(user.id) == 2
        assert PointsLedgerEntry.total_for_match(match.id) == _points_earned_for_match(
            match.id
        )

        reversals = [e for e in _ledger_for_match(match.id) if e.is_reversal]
        assert reversals
        assert all(e.points < 0 for e in reversals)

    def test_rescore_after_result_change(
        self, session, completed_match, user_factory, prediction_factory
    ):
        match = completed_match(toss_winner_index=1, match_winner_index=1)
        user = user_factory()
        prediction_factory(user, match, toss_winner=match.team1, match_winner=match.team1)
        scoring_service.calculate_points(match.id)
        assert user.points == 2

        # Correct the stored result directly, then re-score
        match.match_winner_id = match.team2_id
        session.commit()
        scoring_service.rescore_match(match.id)

        assert user.points == 1
        assert PointsLedgerEntry.total_for_user(user.id) == 1
        assert PointsLedgerEntry.total_for_match(match.id) == 1

    def test_match_not_completed(self, match_factory, user_factory, prediction_factory):
        match = match_factory(status=MatchStatus.ONGOING)
        prediction = prediction_factory(user_factory(), match)

        with pytest.raises(InvalidStateError):
            scoring_service.calculate_points(match.id)

        assert prediction.points_earned is None
        assert _ledger_for_match(match.id) == []

    def test_unknown_match(self, app):
        with pytest.raises(NotFoundError):
            scoring_service.calculate_points(9999)

    def test_failure_rolls_back_everything(
        self, monkeypatch, completed_match, user_factory, prediction_factory
    ):
        match = completed_match(toss_winner_index=1, match_winner_index=1)
        first, second = user_factory(), user_factory()
        p1 = prediction_factory(
            first, match, toss_winner=match.team1, match_winner=match.team1
        )
        p2 = prediction_factory(
            second, match, toss_winner=match.team1, match_winner=match.team1
        )

        original_record = PointsLedgerEntry.record
        calls = {"n": 0}

        def failing_record(user, points, reason, match_id=None):
            calls["n"] += 1
            if calls["n"] == 3:
                raise SQLAlchemyError("disk full")
            return original_record(user, points, reason, match_id=match_id)

        monkeypatch.setattr(PointsLedgerEntry, "record", staticmethod(failing_record))

        with pytest.raises(PersistenceError) as exc_info:
            scoring_service.calculate_points(match.id)

        assert isinstance(exc_info.value.__cause__, SQLAlchemyError)
        assert first.points == 0
        assert second.points == 0
        assert p1.points_earned is None
        assert p2.points_earned is None
        assert _ledger_for_match(match.id) == []


class TestUpdateMatchResult:
    """Tests for completing a match with its result"""

    def test_completes_and_scores(self, match_factory, user_factory, prediction_factory):
        match = match_factory(status=MatchStatus.ONGOING)
        user = user_factory()
        prediction_factory(user, match, toss_winner=match.team2, match_winner=match.team2)

        updated, summary = scoring_service.update_match_result(
            match.id, match.team2_id, match.team1_id, result_summary="Won by 4 runs"
        )

        assert updated.status == MatchStatus.COMPLETED
        assert updated.result_summary == "Won by 4 runs"
        assert summary["pointsAwarded"] == 1
        assert user.points == 1

    def test_completed_result_is_immutable(self, completed_match):
        match = completed_match()

        with pytest.raises(InvalidStateError):
            scoring_service.update_match_result(match.id, match.team1_id, match.team1_id)

    def test_winner_must_play_in_match(self, match_factory, team_factory):
        match = match_factory(status=MatchStatus.ONGOING)
        outsider = team_factory()

        with pytest.raises(ValidationError):
            scoring_service.update_match_result(match.id, None, outsider.id)

        assert match.status == MatchStatus.ONGOING


class TestPointsAdjustment:
    """Tests for admin adjustments and ledger reconciliation"""

    def test_adjustment_goes_through_ledger(self, user_factory):
        user = user_factory()

        scoring_service.adjust_user_points(user.id, 5, reason="bonus")
        scoring_service.adjust_user_points(user.id, 3)

        assert user.points == 3
        assert PointsLedgerEntry.total_for_user(user.id) == 3
        reasons = [e.reason for e in user.ledger_entries.order_by(PointsLedgerEntry.id)]
        assert reasons == ["Admin adjustment: bonus", "Admin adjustment"]

    @pytest.mark.parametrize("bad_total", [-1, "7", 2.5, True, None])
    def test_adjustment_rejects_bad_totals(self, user_factory, bad_total):
        user = user_factory()

        with pytest.raises(ValidationError):
            scoring_service.adjust_user_points(user.id, bad_total)

    def test_reconcile_repairs_drift(self, session, user_factory):
        drifted_user = user_factory()
        clean_user = user_factory()
        scoring_service.adjust_user_points(clean_user.id, 4)

        drifted_user.points = 99
        session.commit()

        drifted = scoring_service.reconcile_user_points()

        assert drifted == [
            {
                "userId": drifted_user.id,
                "username": drifted_user.username,
                "cachedPoints": 99,
                "ledgerPoints": 0,
            }
        ]
        assert drifted_user.points == 0
        assert clean_user.points == 4
        assert scoring_service.reconcile_user_points() == []

    def test_adjustment_measures_from_ledger_not_cache(self, session, user_factory):
        user = user_factory()
        scoring_service.adjust_user_points(user.id, 4)
        user.points = 40
        session.commit()

        scoring_service.adjust_user_points(user.id, 6)

        assert PointsLedgerEntry.total_for_user(user.id) == 6
        assert user.points == 6
        assert [e.points for e in user.ledger_entries.order_by(PointsLedgerEntry.id)] == [4, 2]

    def test_adjustment_to_ledger_total_repairs_cache(self, session, user_factory):
        user = user_factory(points=9)

        scoring_service.adjust_user_points(user.id, 0)

        assert user.points == 0
        assert user.ledger_entries.count() == 0
