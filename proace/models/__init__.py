from proace import db  # noqa: F401 - imported for model imports

from .match import Match, MatchStatus
from .points_ledger import LedgerReason, PointsLedgerEntry
from .prediction import Prediction
from .site_setting import SiteSetting
from .support_ticket import SupportTicket, TicketMessage, TicketPriority, TicketStatus
from .team import Team
from .tournament import Tournament, premium_users, tournament_teams
from .user import User

__all__ = [
    "User",
    "Team",
    "Tournament",
    "Match",
    "MatchStatus",
    "Prediction",
    "PointsLedgerEntry",
    "LedgerReason",
    "SupportTicket",
    "TicketMessage",
    "TicketStatus",
    "TicketPriority",
    "SiteSetting",
    "tournament_teams",
    "premium_users",
]
