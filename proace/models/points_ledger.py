from datetime import datetime, timezone

from proace import db


class LedgerReason:
    CORRECT_TOSS = "Correct toss winner prediction"
    CORRECT_MATCH = "Correct match winner prediction"
    ADMIN_ADJUSTMENT = "Admin adjustment"
    REVERSAL_PREFIX = "Reversal: "


class PointsLedgerEntry(db.Model):
    """Append-only record of a change to a user's points total"""

    __tablename__ = "points_ledger"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    match_id = db.Column(
        db.Integer, db.ForeignKey("matches.id"), nullable=True
    )  # Null for manual adjustments

    points = db.Column(db.Integer, nullable=False)  # Signed delta
    reason = db.Column(db.String(255), nullable=False)
    timestamp = db.Column(
        db.DateTime, default=lambda: datetime.now(timezone.utc), nullable=False
    )

    __table_args__ = (
        db.Index("idx_ledger_user", "user_id"),
        db.Index("idx_ledger_match", "match_id"),
        db.Index("idx_ledger_timestamp", "timestamp"),
    )

    def __repr__(self):
        return f"<PointsLedgerEntry user_id={self.user_id} points={self.points:+d}>"

    @property
    def is_reversal(self):
        return self.reason.startswith(LedgerReason.REVERSAL_PREFIX)

    @staticmethod
    def record(user, points, reason, match_id=None):
        """Credit (or debit) a user and append the matching ledger entry"""
        user.points = (user.points or 0) + points
        entry = PointsLedgerEntry(
            user_id=user.id, match_id=match_id, points=points, reason=reason
        )
        db.session.add(entry)
        return entry

    @staticmethod
    def total_for_user(user_id):
        return (
            db.session.query(db.func.coalesce(db.func.sum(PointsLedgerEntry.points), 0))
            .filter(PointsLedgerEntry.user_id == user_id)
            .scalar()
        )

    @staticmethod
    def total_for_match(match_id):
        return (
            db.session.query(db.func.coalesce(db.func.sum(PointsLedgerEntry.points), 0))
            .filter(PointsLedgerEntry.match_id == match_id)
            .scalar()
        )

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "matchId": self.match_id,
            "points": self.points,
            "reason": self.reason,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }
