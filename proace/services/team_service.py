import logging

from proace.exceptions import InvalidStateError, ValidationError
from proace.forms import load_form
from proace.forms.teams import TeamForm, TeamUpdateForm
from proace.models import Team
from proace.utils.db_utils import atomic, get_or_404

logger = logging.getLogger(__name__)

DEFAULT_TEAMS = [
    ("India", "/assets/flags/india.svg"),
    ("Australia", "/assets/flags/australia.svg"),
    ("England", "/assets/flags/england.svg"),
    ("New Zealand", "/assets/flags/new-zealand.svg"),
    ("Pakistan", "/assets/flags/pakistan.svg"),
    ("South Africa", "/assets/flags/south-africa.svg"),
    ("West Indies", "/assets/flags/west-indies.svg"),
    ("Sri Lanka", "/assets/flags/sri-lanka.svg"),
    ("Bangladesh", "/assets/flags/bangladesh.svg"),
    ("Afghanistan", "/assets/flags/afghanistan.svg"),
]


def create_team(name, logo_url=None, is_custom=True):
    data = load_form(TeamForm, {"name": name, "logo_url": logo_url})
    name = data["name"]

    with atomic(f"create team {name}") as session:
        team = Team(name=name, logo_url=data["logo_url"], is_custom=is_custom)
        session.add(team)

    logger.info(f"Created team {name}")
    return team


def update_team(team_id, name=None, logo_url=None):
    """Rename a team or change its logo; None leaves a field unchanged"""
    team = get_or_404(Team, team_id, "Team")

    sent = {
        key: value
        for key, value in (("name", name), ("logo_url", logo_url))
        if value is not None
    }
    data = load_form(TeamUpdateForm, sent, team=team)
    if "name" in data and not data["name"]:
        raise ValidationError("Team name is required")

    with atomic(f"update team {team_id}"):
        if "name" in data:
            team.name = data["name"]
        if "logo_url" in data:
            team.logo_url = data["logo_url"]

    return team


def delete_team(team_id):
    """Delete a custom team that no match refers to"""
    team = get_or_404(Team, team_id, "Team")

    if not team.is_custom:
        raise InvalidStateError("Cannot delete pre-defined team")
    if team.has_matches():
        raise InvalidStateError("Cannot delete a team that is scheduled in matches")

    with atomic(f"delete team {team_id}") as session:
        session.delete(team)

    logger.info(f"Deleted team {team.name}")


def get_all_teams():
    return Team.get_all()


def get_team_tournaments(team_id):
    team = get_or_404(Team, team_id, "Team")
    return team.tournaments.all()


def seed_default_teams():
    """Create the pre-defined national teams that are missing

    Returns:
        int: number of teams created
    """
    existing = {name for (name,) in Team.query.with_entities(Team.name)}
    missing = [(name, logo) for name, logo in DEFAULT_TEAMS if name not in existing]

    if not missing:
        return 0

    with atomic("seed default teams") as session:
        for name, logo_url in missing:
            session.add(Team(name=name, logo_url=logo_url, is_custom=False))

    logger.info(f"Seeded {len(missing)} default teams")
    return len(missing)
