from datetime import datetime, timezone

from proace import db


class Team(db.Model):
    __tablename__ = "teams"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    logo_url = db.Column(db.String(500))

    # Pre-defined national teams are seeded and cannot be deleted
    is_custom = db.Column(db.Boolean, default=True, nullable=False)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<Team {self.name}>"

    def get_all_matches(self):
        """Get all matches this team plays in"""
        from .match import Match

        return (
            Match.query.filter(
                db.or_(Match.team1_id == self.id, Match.team2_id == self.id)
            )
            .order_by(Match.match_date)
            .all()
        )

    def has_matches(self):
        from .match import Match

        return (
            Match.query.filter(
                db.or_(Match.team1_id == self.id, Match.team2_id == self.id)
            ).first()
            is not None
        )

    @staticmethod
    def get_all():
        return Team.query.order_by(Team.name).all()

    def to_dict(self):
        """Convert team to dictionary for API responses"""
        return {
            "id": self.id,
            "name": self.name,
            "logoUrl": self.logo_url,
            "isCustom": self.is_custom,
        }
