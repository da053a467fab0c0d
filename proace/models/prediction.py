from datetime import datetime, timezone

from proace import db


class Prediction(db.Model):
    __tablename__ = "predictions"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    match_id = db.Column(db.Integer, db.ForeignKey("matches.id"), nullable=False)

    # Toss pick is dropped for tournaments that hide toss predictions
    predicted_toss_winner_id = db.Column(db.Integer, db.ForeignKey("teams.id"))
    predicted_match_winner_id = db.Column(
        db.Integer, db.ForeignKey("teams.id"), nullable=False
    )

    # Null until the match is scored, then 0, 1 or 2
    points_earned = db.Column(db.Integer)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    predicted_toss_winner = db.relationship(
        "Team", foreign_keys=[predicted_toss_winner_id]
    )
    predicted_match_winner = db.relationship(
        "Team", foreign_keys=[predicted_match_winner_id]
    )

    __table_args__ = (
        db.UniqueConstraint("user_id", "match_id", name="unique_user_match_prediction"),
        db.CheckConstraint(
            "points_earned IS NULL OR (points_earned >= 0 AND points_earned <= 2)",
            name="points_earned_range",
        ),
        db.Index("idx_prediction_user", "user_id"),
        db.Index("idx_prediction_match", "match_id"),
        db.Index("idx_prediction_created_at", "created_at"),
    )

    def __repr__(self):
        return f"<Prediction user_id={self.user_id} match_id={self.match_id}>"

    @property
    def is_scored(self):
        return self.points_earned is not None

    def to_dict(self, include_match=False):
        """Convert prediction to dictionary for API responses"""
        data = {
            "id": self.id,
            "userId": self.user_id,
            "matchId": self.match_id,
            "predictedTossWinnerId": self.predicted_toss_winner_id,
            "predictedMatchWinnerId": self.predicted_match_winner_id,
            "pointsEarned": self.points_earned,
            "isScored": self.is_scored,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

        if include_match:
            data["match"] = self.match.to_dict() if self.match else None
            data["predictedTossWinner"] = (
                self.predicted_toss_winner.to_dict()
                if self.predicted_toss_winner
                else None
            )
            data["predictedMatchWinner"] = (
                self.predicted_match_winner.to_dict()
                if self.predicted_match_winner
                else None
            )

        return data
