import logging

from proace.exceptions import InvalidStateError, ValidationError
from proace.forms import load_form
from proace.forms.teams import TournamentForm, TournamentUpdateForm
from proace.models import Match, Team, Tournament, User
from proace.utils.db_utils import atomic, get_or_404

logger = logging.getLogger(__name__)

FLAGS = ("is_premium", "hide_toss_predictions")


def _apply_fields(tournament, data):
    for field, value in data.items():
        if field == "name" and not value:
            raise ValidationError("Tournament name is required")
        if field in FLAGS:
            value = bool(value)
        setattr(tournament, field, value)

    if (
        tournament.start_date
        and tournament.end_date
        and tournament.end_date < tournament.start_date
    ):
        raise ValidationError("Tournament end date must not be before its start date")


def create_tournament(data):
    """
    Create a tournament

    Args:
        data: dict with name and optional description, image_url, start_date,
            end_date, is_premium and hide_toss_predictions
    """
    tournament = Tournament()
    _apply_fields(tournament, load_form(TournamentForm, data))

    with atomic(f"create tournament {tournament.name}") as session:
        session.add(tournament)

    logger.info(f"Created tournament {tournament.name}")
    return tournament


def update_tournament(tournament_id, data):
    """Change the tournament fields present in data"""
    tournament = get_or_404(Tournament, tournament_id, "Tournament")
    fields = load_form(TournamentUpdateForm, data, tournament=tournament)

    with atomic(f"update tournament {tournament_id}"):
        _apply_fields(tournament, fields)

    return tournament


def delete_tournament(tournament_id):
    """Delete a tournament that has no matches"""
    tournament = get_or_404(Tournament, tournament_id, "Tournament")

    if tournament.matches.first() is not None:
        raise InvalidStateError("Cannot delete a tournament that has matches")

    with atomic(f"delete tournament {tournament_id}") as session:
        session.delete(tournament)

    logger.info(f"Deleted tournament {tournament.name}")


def get_tournament(tournament_id):
    return get_or_404(Tournament, tournament_id, "Tournament")


def get_all_tournaments():
    return Tournament.query.order_by(Tournament.created_at.asc(), Tournament.id).all()


def get_tournament_matches(tournament_id):
    tournament = get_or_404(Tournament, tournament_id, "Tournament")
    return tournament.matches.order_by(Match.match_date.asc()).all()


def get_tournament_teams(tournament_id):
    tournament = get_or_404(Tournament, tournament_id, "Tournament")
    return tournament.teams.order_by(Team.name).all()


def add_team_to_tournament(tournament_id, team_id):
    tournament = get_or_404(Tournament, tournament_id, "Tournament")
    team = get_or_404(Team, team_id, "Team")

    if tournament.has_team(team.id):
        return tournament

    with atomic(f"add team {team_id} to tournament {tournament_id}"):
        tournament.teams.append(team)

    return tournament


def remove_team_from_tournament(tournament_id, team_id):
    tournament = get_or_404(Tournament, tournament_id, "Tournament")
    team = get_or_404(Team, team_id, "Team")

    if not tournament.has_team(team.id):
        return tournament

    with atomic(f"remove team {team_id} from tournament {tournament_id}"):
        tournament.teams.remove(team)

    return tournament


def add_premium_user(tournament_id, user_id):
    """Grant a user access to a premium tournament"""
    tournament = get_or_404(Tournament, tournament_id, "Tournament")
    user = get_or_404(User, user_id, "User")

    if tournament.is_premium_user(user.id):
        return tournament

    with atomic(f"add premium user {user_id} to tournament {tournament_id}"):
        tournament.premium_members.append(user)

    logger.info(f"Granted {user.username} access to premium tournament {tournament.name}")
    return tournament


def remove_premium_user(tournament_id, user_id):
    tournament = get_or_404(Tournament, tournament_id, "Tournament")
    user = get_or_404(User, user_id, "User")

    if not tournament.is_premium_user(user.id):
        return tournament

    with atomic(f"remove premium user {user_id} from tournament {tournament_id}"):
        tournament.premium_members.remove(user)

    return tournament


def get_premium_users(tournament_id):
    tournament = get_or_404(Tournament, tournament_id, "Tournament")
    return tournament.premium_members.order_by(User.username).all()


def get_premium_access(tournament_id, user):
    """Whether a user is on a tournament's premium list and may predict in it"""
    tournament = get_or_404(Tournament, tournament_id, "Tournament")
    return {
        "isPremium": tournament.is_premium_user(user.id),
        "hasAccess": tournament.accepts_predictions_from(user),
    }
