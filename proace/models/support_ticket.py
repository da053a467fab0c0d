from datetime import datetime, timezone

from proace import db


class TicketStatus:
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"

    ALL = (OPEN, IN_PROGRESS, RESOLVED, CLOSED)


class TicketPriority:
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    ALL = (LOW, MEDIUM, HIGH)


class SupportTicket(db.Model):
    __tablename__ = "support_tickets"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    subject = db.Column(db.String(200), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=TicketStatus.OPEN)
    priority = db.Column(db.String(10), nullable=False, default=TicketPriority.MEDIUM)
    assigned_to_user_id = db.Column(db.Integer, db.ForeignKey("users.id"))

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    assigned_to = db.relationship("User", foreign_keys=[assigned_to_user_id])
    messages = db.relationship(
        "TicketMessage",
        backref="ticket",
        lazy="dynamic",
        cascade="all, delete-orphan",
        order_by="TicketMessage.created_at",
    )

    __table_args__ = (
        db.Index("idx_ticket_user", "user_id"),
        db.Index("idx_ticket_status", "status"),
    )

    def __repr__(self):
        return f"<SupportTicket {self.id} {self.status}>"

    def can_be_viewed_by(self, user):
        return user.is_admin or user.id == self.user_id

    def to_dict(self, include_messages=False):
        data = {
            "id": self.id,
            "userId": self.user_id,
            "subject": self.subject,
            "status": self.status,
            "priority": self.priority,
            "assignedToUserId": self.assigned_to_user_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

        if include_messages:
            data["messages"] = [message.to_dict() for message in self.messages]

        return data


class TicketMessage(db.Model):
    __tablename__ = "ticket_messages"

    id = db.Column(db.Integer, primary_key=True)
    ticket_id = db.Column(
        db.Integer, db.ForeignKey("support_tickets.id"), nullable=False
    )
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    message = db.Column(db.Text, nullable=False)
    is_admin_reply = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    author = db.relationship("User", foreign_keys=[user_id])

    __table_args__ = (db.Index("idx_ticket_message_ticket", "ticket_id"),)

    def to_dict(self):
        return {
            "id": self.id,
            "ticketId": self.ticket_id,
            "userId": self.user_id,
            "username": self.author.username if self.author else None,
            "displayName": self.author.display_name if self.author else None,
            "message": self.message,
            "isAdminReply": self.is_admin_reply,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
