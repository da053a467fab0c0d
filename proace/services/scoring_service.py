"""
ProAce Scoring Service

Turns a completed match's result into point awards. Every award is written
twice: onto the user's running ``points`` total and as an append-only
PointsLedgerEntry. The ledger is the source of truth; ``points`` is a cache
that reconcile_user_points() can rebuild.

Scoring a match is all-or-nothing (one transaction) and re-scoring never
double-credits: earlier ledger entries for the match are superseded by
appending reversing entries before the fresh awards are written.
"""

import logging

from proace import db
from proace.exceptions import InvalidStateError, ValidationError
from proace.forms import load_form
from proace.forms.matches import MatchResultForm
from proace.forms.users import PointsAdjustmentForm
from proace.models import (
    LedgerReason,
    Match,
    MatchStatus,
    PointsLedgerEntry,
    Prediction,
    User,
)
from proace.utils.db_utils import atomic, get_or_404
from proace.utils.scoring import score_prediction

logger = logging.getLogger(__name__)


def _reverse_match_awards(match):
    """Append a reversing entry for every award currently standing for a match

    Returns:
        int: number of points reversed
    """
    entries = (
        PointsLedgerEntry.query.filter_by(match_id=match.id)
        .order_by(PointsLedgerEntry.id)
        .all()
    )

    # Net standing points per (user, reason); reversals cancel earlier awards
    standing = {}
    for entry in entries:
        reason = entry.reason
        if entry.is_reversal:
            reason = reason[len(LedgerReason.REVERSAL_PREFIX):]
        key = (entry.user_id, reason)
        standing[key] = standing.get(key, 0) + entry.points

    reversed_points = 0
    for (user_id, reason), points in sorted(standing.items()):
        if points == 0:
            continue
        user = db.session.get(User, user_id)
        PointsLedgerEntry.record(
            user,
            -points,
            f"{LedgerReason.REVERSAL_PREFIX}{reason}",
            match_id=match.id,
        )
        reversed_points += points

    if reversed_points:
        logger.info(
            f"Reversed {reversed_points} previously awarded points for match {match.id}"
        )

    return reversed_points


def _score_match(match):
    """Score every prediction of a completed match inside the current transaction"""
    if match.status != MatchStatus.COMPLETED:
        raise InvalidStateError(
            f"Match with id {match.id} is not completed (status: {match.status})"
        )

    _reverse_match_awards(match)

    predictions = (
        Prediction.query.filter_by(match_id=match.id).order_by(Prediction.id).all()
    )

    awarded = 0
    for prediction in predictions:
        awards = score_prediction(prediction, match)
        prediction.points_earned = sum(points for points, _ in awards)

        for points, reason in awards:
            PointsLedgerEntry.record(
                prediction.user, points, reason, match_id=match.id
            )
        awarded += prediction.points_earned

    # Flush inside the transaction so constraint violations surface here
    db.session.flush()

    logger.info(
        f"Scored match {match.id}: {len(predictions)} predictions, "
        f"{awarded} points awarded"
    )

    return {
        "matchId": match.id,
        "predictionsScored": len(predictions),
        "pointsAwarded": awarded,
    }


def calculate_points(match_id):
    """
    Score all predictions for a completed match.

    Safe to call more than once: standing awards for the match are reversed
    before being re-derived, so users are never double-credited.

    Args:
        match_id: ID of a match whose status is completed

    Returns:
        dict: summary with predictionsScored and pointsAwarded

    Raises:
        NotFoundError: match does not exist
        InvalidStateError: match is not completed
        PersistenceError: database write failed (nothing is applied)
    """
    match = get_or_404(Match, match_id, "Match")

    with atomic(f"score match {match_id}"):
        return _score_match(match)


def rescore_match(match_id):
    """Re-run scoring for an already completed match"""
    logger.info(f"Re-scoring match {match_id}")
    return calculate_points(match_id)


def _validate_result_team(match, team_id, label):
    if team_id is None:
        return None

    if not match.involves_team(team_id):
        raise ValidationError(f"{label} must be one of the two teams in the match")
    return team_id


def update_match_result(
    match_id,
    toss_winner_id,
    match_winner_id,
    team1_score=None,
    team2_score=None,
    result_summary=None,
):
    """
    Complete a match with its result and score it in one transaction.

    Args:
        match_id: ID of the match
        toss_winner_id: Team that won the toss (may be None)
        match_winner_id: Team that won the match (may be None)
        team1_score, team2_score, result_summary: optional display fields

    Raises:
        InvalidStateError: match is already completed; results are immutable
    """
    match = get_or_404(Match, match_id, "Match")

    if match.status == MatchStatus.COMPLETED:
        raise InvalidStateError(
            f"Match with id {match_id} is already completed; use re-scoring instead"
        )

    result = load_form(
        MatchResultForm,
        {
            "toss_winner_id": toss_winner_id,
            "match_winner_id": match_winner_id,
            "team1_score": team1_score,
            "team2_score": team2_score,
            "result_summary": result_summary,
        },
    )
    toss_winner_id = _validate_result_team(
        match, result["toss_winner_id"], "Toss winner"
    )
    match_winner_id = _validate_result_team(
        match, result["match_winner_id"], "Match winner"
    )

    with atomic(f"record result for match {match_id}"):
        match.status = MatchStatus.COMPLETED
        match.toss_winner_id = toss_winner_id
        match.match_winner_id = match_winner_id
        for field in ("team1_score", "team2_score", "result_summary"):
            if result[field] is not None:
                setattr(match, field, result[field])

        summary = _score_match(match)

    logger.info(
        f"Match {match_id} completed - toss winner: {toss_winner_id}, "
        f"match winner: {match_winner_id}"
    )
    return match, summary


def adjust_user_points(user_id, new_total, reason=None):
    """
    Set a user's points total through the ledger.

    The difference to the user's ledger sum is appended as an admin
    adjustment entry, and the cached total is set to the new value, so
    afterwards both equal ``new_total`` even if the cache had drifted.
    """
    user = get_or_404(User, user_id, "User")
    fields = load_form(PointsAdjustmentForm, {"points": new_total, "reason": reason})
    new_total = fields["points"]

    delta = new_total - int(PointsLedgerEntry.total_for_user(user.id))
    if delta == 0 and user.points == new_total:
        return user

    with atomic(f"adjust points for user {user_id}"):
        if delta:
            description = LedgerReason.ADMIN_ADJUSTMENT
            if fields["reason"]:
                description = f"{description}: {fields['reason']}"
            PointsLedgerEntry.record(user, delta, description)
        user.points = new_total

    logger.info(f"Adjusted points for user {user.username} by {delta:+d}")
    return user


    with atomic(f"adjust points for user {user_id}"):
        description = LedgerReason.ADMIN_ADJUSTMENT
        if reason:
            description = f"{description}: {reason}"
        PointsLedgerEntry.record(user, delta, description)

    logger.info(f"Adjusted points for user {user.username} by {delta:+d}")
    return user


def reconcile_user_points():
    """
    Rebuild every user's cached points total from the ledger.

    Returns:
        list of dicts describing users whose cached total had drifted
    """
    totals = dict(
        db.session.query(
            PointsLedgerEntry.user_id, db.func.sum(PointsLedgerEntry.points)
        )
        .group_by(PointsLedgerEntry.user_id)
        .all()
    )

    drifted = []
    with atomic("reconcile user points"):
        for user in User.query.order_by(User.id).all():
            ledger_total = int(totals.get(user.id) or 0)
            if (user.points or 0) != ledger_total:
                drifted.append(
                    {
                        "userId": user.id,
                        "username": user.username,
                        "cachedPoints": user.points,
                        "ledgerPoints": ledger_total,
                    }
                )
                user.points = ledger_total

    if drifted:
        logger.warning(f"Reconciled points for {len(drifted)} users")
    else:
        logger.info("All user point totals match the ledger")

    return drifted
