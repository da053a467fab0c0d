from datetime import datetime, timezone

from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash

from proace import db


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    # Profile information
    display_name = db.Column(db.String(100))
    profile_image = db.Column(db.String(500))

    # Account status
    is_admin = db.Column(db.Boolean, default=False, nullable=False)
    is_verified = db.Column(db.Boolean, default=False, nullable=False)

    # Running total, kept equal to the sum of this user's ledger entries
    points = db.Column(db.Integer, default=0, nullable=False)

    # Social engagement
    viewed_by_count = db.Column(db.Integer, default=0, nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    predictions = db.relationship(
        "Prediction", backref="user", lazy="dynamic", cascade="all, delete-orphan"
    )
    ledger_entries = db.relationship(
        "PointsLedgerEntry",
        backref="user",
        lazy="dynamic",
        cascade="all, delete-orphan",
    )
    support_tickets = db.relationship(
        "SupportTicket",
        foreign_keys="SupportTicket.user_id",
        backref="user",
        lazy="dynamic",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.Index("idx_user_points", "points"),
        db.Index("idx_user_created_at", "created_at"),
    )

    def __repr__(self):
        return f"<User {self.username}>"

    def set_password(self, password):
        """Set password hash"""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Check password against hash"""
        return check_password_hash(self.password_hash, password)

    def set_display_name(self, display_name):
        """Set display name with sanitization"""
        import html

        if display_name:
            self.display_name = html.escape(display_name.strip())
        else:
            self.display_name = display_name

    @property
    def full_name(self):
        """Return display name or username"""
        return self.display_name or self.username

    @staticmethod
    def get_by_username(username):
        """Case-insensitive username lookup"""
        return User.query.filter(
            db.func.lower(User.username) == username.strip().lower()
        ).first()

    def to_dict(self, include_private=False):
        """Convert user to dictionary for API responses"""
        data = {
            "id": self.id,
            "username": self.username,
            "displayName": self.display_name,
            "profileImage": self.profile_image,
            "points": self.points,
            "isVerified": self.is_verified,
            "viewedByCount": self.viewed_by_count,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

        if include_private:
            data["email"] = self.email
            data["isAdmin"] = self.is_admin

        return data
