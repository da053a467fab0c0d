"""
Scoring rules for ProAce predictions

This module handles the point calculation for a single prediction.
Persisting awards and crediting users lives in
proace/services/scoring_service.py; ranking lives in
proace/services/leaderboard_service.py.
"""

from proace.models.points_ledger import LedgerReason

POINTS_PER_CORRECT_FIELD = 1
MAX_POINTS_PER_PREDICTION = 2


def score_prediction(prediction, match):
    """
    Work out which outcome fields a prediction got right.

    Returns:
        list of (points, reason) tuples, one per correct field. A field whose
        match outcome is still null never scores.

    Args:
        prediction: Prediction with predicted_toss_winner_id/predicted_match_winner_id
        match: completed Match with toss_winner_id/match_winner_id
    """
    awards = []

    if (
        match.toss_winner_id is not None
        and prediction.predicted_toss_winner_id == match.toss_winner_id
    ):
        awards.append((POINTS_PER_CORRECT_FIELD, LedgerReason.CORRECT_TOSS))

    if (
        match.match_winner_id is not None
        and prediction.predicted_match_winner_id == match.match_winner_id
    ):
        awards.append((POINTS_PER_CORRECT_FIELD, LedgerReason.CORRECT_MATCH))

    return awards


def count_correct_fields(prediction, match):
    """Number of correctly guessed outcome fields (0, 1 or 2)"""
    return len(score_prediction(prediction, match))
