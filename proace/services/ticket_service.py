import logging

from proace.exceptions import AccessDeniedError, InvalidStateError, ValidationError
from proace.forms import load_form
from proace.forms.support import TicketForm, TicketMessageForm, TicketUpdateForm
from proace.models import SupportTicket, TicketMessage, TicketPriority, TicketStatus, User
from proace.utils.db_utils import atomic, get_or_404

logger = logging.getLogger(__name__)


def create_ticket(user, subject, message, priority=TicketPriority.MEDIUM):
    """Open a support ticket with its first message"""
    fields = load_form(
        TicketForm, {"subject": subject, "message": message, "priority": priority}
    )

    with atomic(f"create ticket for {user.username}") as session:
        ticket = SupportTicket(
            user_id=user.id,
            subject=fields["subject"],
            priority=fields["priority"] or TicketPriority.MEDIUM,
        )
        session.add(ticket)
        session.flush()
        session.add(
            TicketMessage(
                ticket_id=ticket.id,
                user_id=user.id,
                message=fields["message"],
                is_admin_reply=user.is_admin,
            )
        )

    logger.info(f"Ticket {ticket.id} opened by {user.username}")
    return ticket


def get_user_tickets(user):
    return (
        SupportTicket.query.filter_by(user_id=user.id)
        .order_by(SupportTicket.created_at.desc(), SupportTicket.id.desc())
        .all()
    )


def get_all_tickets(status=None):
    query = SupportTicket.query

    if status:
        if status not in TicketStatus.ALL:
            raise ValidationError(f"Unknown ticket status '{status}'")
        query = query.filter_by(status=status)

    return query.order_by(SupportTicket.created_at.desc(), SupportTicket.id.desc()).all()


def get_ticket(ticket_id, user):
    ticket = get_or_404(SupportTicket, ticket_id, "Ticket")
    if not ticket.can_be_viewed_by(user):
        raise AccessDeniedError("You do not have access to this ticket")
    return ticket


def add_message(ticket_id, user, message):
    """Append a message; admin replies are flagged and move open tickets along"""
    ticket = get_ticket(ticket_id, user)
    message = load_form(TicketMessageForm, {"message": message})["message"]

    if ticket.status == TicketStatus.CLOSED:
        raise InvalidStateError("Cannot reply to a closed ticket")

    with atomic(f"add message to ticket {ticket_id}") as session:
        reply = TicketMessage(
            ticket_id=ticket.id,
            user_id=user.id,
            message=message,
            is_admin_reply=user.is_admin,
        )
        session.add(reply)
        if user.is_admin and ticket.status == TicketStatus.OPEN:
            ticket.status = TicketStatus.IN_PROGRESS

    return reply


def update_ticket(ticket_id, status=None, priority=None, assigned_to_user_id=None):
    """Admin update of ticket status, priority or assignee"""
    ticket = get_or_404(SupportTicket, ticket_id, "Ticket")

    fields = load_form(
        TicketUpdateForm,
        {
            "status": status,
            "priority": priority,
            "assigned_to_user_id": assigned_to_user_id,
        },
    )
    status, priority = fields["status"], fields["priority"]

    assignee = None
    if fields["assigned_to_user_id"] is not None:
        assignee = get_or_404(User, fields["assigned_to_user_id"], "User")
        if not assignee.is_admin:
            raise ValidationError("Tickets can only be assigned to admins")

    with atomic(f"update ticket {ticket_id}"):
        if status:
            ticket.status = status
        if priority:
            ticket.priority = priority
        if assignee is not None:
            ticket.assigned_to_user_id = assignee.id

    logger.info(f"Ticket {ticket_id} updated: status={ticket.status}")
    return ticket
