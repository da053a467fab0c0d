from datetime import datetime, timezone

from proace import db


class MatchStatus:
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    TIE = "tie"
    VOID = "void"

    ALL = (UPCOMING, ONGOING, COMPLETED, TIE, VOID)

    # Listing order: live matches first, then upcoming, then finished
    SORT_ORDER = {ONGOING: 0, UPCOMING: 1, COMPLETED: 2, TIE: 3, VOID: 4}


class Match(db.Model):
    __tablename__ = "matches"

    id = db.Column(db.Integer, primary_key=True)
    tournament_id = db.Column(
        db.Integer, db.ForeignKey("tournaments.id"), nullable=False
    )

    # Teams
    team1_id = db.Column(db.Integer, db.ForeignKey("teams.id"), nullable=False)
    team2_id = db.Column(db.Integer, db.ForeignKey("teams.id"), nullable=False)

    # Scheduling
    match_date = db.Column(db.DateTime, nullable=False)
    location = db.Column(db.String(200))

    status = db.Column(db.String(20), nullable=False, default=MatchStatus.UPCOMING)

    # Result, only set once the match is completed
    toss_winner_id = db.Column(db.Integer, db.ForeignKey("teams.id"))
    match_winner_id = db.Column(db.Integer, db.ForeignKey("teams.id"))
    team1_score = db.Column(db.String(50))
    team2_score = db.Column(db.String(50))
    result_summary = db.Column(db.String(500))

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    team1 = db.relationship("Team", foreign_keys=[team1_id])
    team2 = db.relationship("Team", foreign_keys=[team2_id])
    toss_winner = db.relationship("Team", foreign_keys=[toss_winner_id])
    match_winner = db.relationship("Team", foreign_keys=[match_winner_id])
    predictions = db.relationship(
        "Prediction", backref="match", lazy="dynamic", cascade="all, delete-orphan"
    )
    ledger_entries = db.relationship(
        "PointsLedgerEntry", backref="match", lazy="dynamic"
    )

    __table_args__ = (
        db.Index("idx_match_tournament", "tournament_id"),
        db.Index("idx_match_status", "status"),
        db.Index("idx_match_date", "match_date"),
        db.CheckConstraint("team1_id != team2_id", name="different_teams"),
        db.CheckConstraint(
            "status IN ('upcoming', 'ongoing', 'completed', 'tie', 'void')",
            name="valid_match_status",
        ),
        db.CheckConstraint(
            "status = 'completed' OR "
            "(toss_winner_id IS NULL AND match_winner_id IS NULL)",
            name="result_only_when_completed",
        ),
    )

    def __repr__(self):
        return f'<Match {self.team1.name if self.team1 else "TBD"} vs {self.team2.name if self.team2 else "TBD"}>'

    @property
    def is_completed(self):
        return self.status == MatchStatus.COMPLETED

    @property
    def is_open_for_predictions(self):
        return self.status == MatchStatus.UPCOMING

    def involves_team(self, team_id):
        """Check whether a team plays in this match"""
        return team_id in (self.team1_id, self.team2_id)

    def has_ledger_history(self):
        return self.ledger_entries.first() is not None

    def get_prediction_stats(self):
        """Get count of toss and match predictions for each team"""
        predictions = self.predictions.all()

        def _count(field, team_id):
            return sum(1 for p in predictions if getattr(p, field) == team_id)

        return {
            "matchId": self.id,
            "totalPredictions": len(predictions),
            "toss": {
                "team1": _count("predicted_toss_winner_id", self.team1_id),
                "team2": _count("predicted_toss_winner_id", self.team2_id),
            },
            "match": {
                "team1": _count("predicted_match_winner_id", self.team1_id),
                "team2": _count("predicted_match_winner_id", self.team2_id),
            },
        }

    @staticmethod
    def sort_for_listing(matches):
        """Sort ongoing, upcoming then finished; soonest upcoming first, latest finished first"""

        def _key(match):
            order = MatchStatus.SORT_ORDER.get(match.status, len(MatchStatus.ALL))
            timestamp = match.match_date.timestamp() if match.match_date else 0
            if match.status == MatchStatus.UPCOMING:
                return (order, timestamp)
            return (order, -timestamp)

        return sorted(matches, key=_key)

    def to_dict(self):
        """Convert match to dictionary for API responses"""
        return {
            "id": self.id,
            "tournamentId": self.tournament_id,
            "team1": self.team1.to_dict() if self.team1 else None,
            "team2": self.team2.to_dict() if self.team2 else None,
            "matchDate": self.match_date.isoformat() if self.match_date else None,
            "location": self.location,
            "status": self.status,
            "tossWinnerId": self.toss_winner_id,
            "matchWinnerId": self.match_winner_id,
            "tossWinner": self.toss_winner.to_dict() if self.toss_winner else None,
            "matchWinner": self.match_winner.to_dict() if self.match_winner else None,
            "team1Score": self.team1_score,
            "team2Score": self.team2_score,
            "resultSummary": self.result_summary,
        }
