"""
ProAce Leaderboard Service

Read-side aggregation of user performance. Nothing here writes to the
database; every call recomputes from users, predictions and matches.
"""

import logging
from dataclasses import dataclass

from proace import db
from proace.models import (
    LedgerReason,
    Match,
    MatchStatus,
    PointsLedgerEntry,
    Prediction,
    Tournament,
    User,
)
from proace.utils.db_utils import get_or_404
from proace.utils.scoring import (
    MAX_POINTS_PER_PREDICTION,
    count_correct_fields,
    score_prediction,
)
from proace.utils.timeframes import ALL_TIME, timeframe_start

logger = logging.getLogger(__name__)


@dataclass
class LeaderboardEntry:
    id: int
    username: str
    display_name: str = None
    profile_image: str = None
    is_verified: bool = False
    points: int = 0
    correct_predictions: int = 0
    total_matches: int = 0
    correct_toss: int = 0
    correct_match: int = 0

    @classmethod
    def for_user(cls, user, points=0):
        return cls(
            id=user.id,
            username=user.username,
            display_name=user.display_name,
            profile_image=user.profile_image,
            is_verified=user.is_verified,
            points=points,
        )

    @property
    def success_ratio(self):
        """Correct fields over guessable fields; 0 when nothing was predicted"""
        if self.total_matches == 0:
            return 0
        return self.correct_predictions / (
            self.total_matches * MAX_POINTS_PER_PREDICTION
        )

    def record(self, prediction, match):
        self.total_matches += 1
        for _, reason in score_prediction(prediction, match):
            self.correct_predictions += 1
            if reason == LedgerReason.CORRECT_TOSS:
                self.correct_toss += 1
            else:
                self.correct_match += 1

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "displayName": self.display_name,
            "profileImage": self.profile_image,
            "isVerified": self.is_verified,
            "points": self.points,
            "correctPredictions": self.correct_predictions,
            "totalMatches": self.total_matches,
        }


def rank_key(entry):
    """Sort key for descending order: points, then success ratio, then matches"""
    return (entry.points, entry.success_ratio, entry.total_matches)


def rank_entries(entries):
    """
    Rank leaderboard entries, best first.

    Input order is kept for full ties (sort is stable), so callers pass
    entries in ascending user id to get a deterministic result.
    """
    return sorted(entries, key=rank_key, reverse=True)


def _completed_predictions(match_ids=None, created_since=None, user_id=None):
    """Get (prediction, match) pairs whose match is completed"""
    query = (
        db.session.query(Prediction, Match)
        .join(Match, Prediction.match_id == Match.id)
        .filter(Match.status == MatchStatus.COMPLETED)
    )

    if match_ids is not None:
        query = query.filter(Prediction.match_id.in_(match_ids))

    if created_since is not None:
        query = query.filter(Prediction.created_at >= created_since)

    if user_id is not None:
        query = query.filter(Prediction.user_id == user_id)

    return query.order_by(Prediction.id).all()


def get_leaderboard(timeframe=ALL_TIME):
    """
    Global leaderboard over all users.

    Points come from each user's stored total. The timeframe limits which
    predictions are counted towards correctPredictions/totalMatches.

    Args:
        timeframe: all-time, today, this-week, this-month or this-year

    Returns:
        list of LeaderboardEntry, best first, including users with no predictions
    """
    since = timeframe_start(timeframe)

    entries = {
        user.id: LeaderboardEntry.for_user(user, points=user.points or 0)
        for user in User.query.order_by(User.id).all()
    }

    for prediction, match in _completed_predictions(created_since=since):
        entry = entries.get(prediction.user_id)
        if entry is not None:
            entry.record(prediction, match)

    ranked = rank_entries(entries.values())
    logger.debug(f"Built {timeframe} leaderboard with {len(ranked)} users")
    return ranked


def get_tournament_leaderboard(tournament_id, timeframe=ALL_TIME):
    """
    Leaderboard scoped to one tournament.

    Points are recomputed from ledger entries for the tournament's matches.
    Only users with at least one completed prediction are listed.

    The timeframe is accepted for interface parity with get_leaderboard but
    is not applied; tournament standings always cover the whole tournament.
    """
    tournament = get_or_404(Tournament, tournament_id, "Tournament")

    match_ids = [
        match_id
        for (match_id,) in db.session.query(Match.id).filter(
            Match.tournament_id == tournament.id
        )
    ]
    if not match_ids:
        return []

    if timeframe != ALL_TIME:
        logger.debug(
            f"Ignoring timeframe '{timeframe}' for tournament {tournament_id} leaderboard"
        )

    entries = {
        user.id: LeaderboardEntry.for_user(user)
        for user in User.query.order_by(User.id).all()
    }

    ledger_totals = (
        db.session.query(
            PointsLedgerEntry.user_id, db.func.sum(PointsLedgerEntry.points)
        )
        .filter(PointsLedgerEntry.match_id.in_(match_ids))
        .group_by(PointsLedgerEntry.user_id)
        .all()
    )
    for user_id, points in ledger_totals:
        if user_id in entries:
            entries[user_id].points = int(points or 0)

    for prediction, match in _completed_predictions(match_ids=match_ids):
        entry = entries.get(prediction.user_id)
        if entry is not None:
            entry.record(prediction, match)

    return rank_entries(e for e in entries.values() if e.total_matches > 0)


def get_user_stats(user_id):
    """
    Prediction accuracy for a single user across all completed matches

    Returns:
        dict with correctPredictions, totalMatches and accuracy (percent)
    """
    user = get_or_404(User, user_id, "User")

    entry = LeaderboardEntry.for_user(user, points=user.points or 0)
    for prediction, match in _completed_predictions(user_id=user.id):
        entry.record(prediction, match)

    return {
        "correctPredictions": entry.correct_predictions,
        "totalMatches": entry.total_matches,
        "accuracy": entry.success_ratio * 100,
    }


def get_tournament_analysis(tournament_id):
    """
    Tournament standings with rank, accuracy and the toss/match split

    Returns:
        list of dicts, best first, ranks starting at 1
    """
    analysis = []
    for rank, entry in enumerate(get_tournament_leaderboard(tournament_id), start=1):
        row = entry.to_dict()
        row.update(
            {
                "rank": rank,
                "accuracy": entry.success_ratio * 100,
                "correctTossPredictions": entry.correct_toss,
                "correctMatchPredictions": entry.correct_match,
            }
        )
        analysis.append(row)
    return analysis


def _percentage(part, total):
    """Whole percent, halves rounded up"""
    if total == 0:
        return 0
    return int(part * 100 / total + 0.5)


def _pick_split(counts):
    total = counts["team1"] + counts["team2"]
    return {
        "team1Predictions": counts["team1"],
        "team2Predictions": counts["team2"],
        "team1Percentage": _percentage(counts["team1"], total),
        "team2Percentage": _percentage(counts["team2"], total),
    }


def get_tournament_matches_analysis(tournament_id):
    """
    How the crowd picked each completed match of a tournament

    Every match carries the percentage split of toss and match picks between
    the two teams and one row per prediction saying which picks were right.
    Predictions not yet scored show the points they would earn.
    """
    tournament = get_or_404(Tournament, tournament_id, "Tournament")
    matches = (
        tournament.matches.filter(Match.status == MatchStatus.COMPLETED)
        .order_by(Match.match_date.asc(), Match.id)
        .all()
    )

    analysis = []
    for match in matches:
        stats = match.get_prediction_stats()
        user_predictions = []
        for prediction in match.predictions.order_by(Prediction.id):
            points = prediction.points_earned
            if not prediction.is_scored:
                points = count_correct_fields(prediction, match)
            user = prediction.user
            user_predictions.append(
                {
                    "userId": user.id,
                    "username": user.username,
                    "displayName": user.display_name,
                    "profileImage": user.profile_image,
                    "predictedTossWinnerId": prediction.predicted_toss_winner_id,
                    "predictedMatchWinnerId": prediction.predicted_match_winner_id,
                    "tossCorrect": match.toss_winner_id is not None
                    and prediction.predicted_toss_winner_id == match.toss_winner_id,
                    "matchCorrect": match.match_winner_id is not None
                    and prediction.predicted_match_winner_id == match.match_winner_id,
                    "pointsEarned": points,
                }
            )

        row = match.to_dict()
        row.update(
            {
                "totalPredictions": stats["totalPredictions"],
                "tossStats": _pick_split(stats["toss"]),
                "matchStats": _pick_split(stats["match"]),
                "userPredictions": user_predictions,
            }
        )
        analysis.append(row)

    return analysis
