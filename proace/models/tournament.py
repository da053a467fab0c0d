from datetime import datetime, timezone

from proace import db

tournament_teams = db.Table(
    "tournament_teams",
    db.Column(
        "tournament_id",
        db.Integer,
        db.ForeignKey("tournaments.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    db.Column(
        "team_id",
        db.Integer,
        db.ForeignKey("teams.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)

premium_users = db.Table(
    "premium_users",
    db.Column(
        "tournament_id",
        db.Integer,
        db.ForeignKey("tournaments.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    db.Column(
        "user_id",
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Tournament(db.Model):
    __tablename__ = "tournaments"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), unique=True, nullable=False)
    description = db.Column(db.Text)
    image_url = db.Column(db.String(500))

    start_date = db.Column(db.DateTime)
    end_date = db.Column(db.DateTime)

    # Exposure flags, they never change how points are calculated
    is_premium = db.Column(db.Boolean, default=False, nullable=False)
    hide_toss_predictions = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    matches = db.relationship("Match", backref="tournament", lazy="dynamic")
    teams = db.relationship(
        "Team",
        secondary=tournament_teams,
        lazy="dynamic",
        backref=db.backref("tournaments", lazy="dynamic"),
    )
    premium_members = db.relationship(
        "User",
        secondary=premium_users,
        lazy="dynamic",
        backref=db.backref("premium_tournaments", lazy="dynamic"),
    )

    __table_args__ = (db.Index("idx_tournament_dates", "start_date", "end_date"),)

    def __repr__(self):
        return f"<Tournament {self.name}>"

    def has_team(self, team_id):
        return self.teams.filter_by(id=team_id).first() is not None

    def is_premium_user(self, user_id):
        """Check whether a user was granted access to this premium tournament"""
        return self.premium_members.filter_by(id=user_id).first() is not None

    def accepts_predictions_from(self, user):
        """Premium tournaments only accept predictions from selected users"""
        if not self.is_premium:
            return True
        return self.is_premium_user(user.id)

    def to_dict(self):
        """Convert tournament to dictionary for API responses"""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "imageUrl": self.image_url,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "isPremium": self.is_premium,
            "hideTossPredictions": self.hide_toss_predictions,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
