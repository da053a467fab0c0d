import logging

from proace.exceptions import InvalidStateError, ValidationError
from proace.forms import load_form
from proace.forms.matches import MatchForm, MatchStatusForm, MatchUpdateForm
from proace.models import Match, MatchStatus, Team, Tournament
from proace.utils.db_utils import atomic, get_or_404

logger = logging.getLogger(__name__)

RESULT_FIELDS = ("toss_winner_id", "match_winner_id")

# Status changes allowed through set_match_status; completion goes through
# scoring_service.update_match_result so the result gets scored
STATUS_TRANSITIONS = {
    MatchStatus.UPCOMING: {MatchStatus.ONGOING, MatchStatus.TIE, MatchStatus.VOID},
    MatchStatus.ONGOING: {MatchStatus.UPCOMING, MatchStatus.TIE, MatchStatus.VOID},
    MatchStatus.TIE: {MatchStatus.VOID},
    MatchStatus.VOID: set(),
    MatchStatus.COMPLETED: set(),
}


def _validate_teams(team1_id, team2_id):
    if team1_id == team2_id:
        raise ValidationError("A match needs two different teams")
    get_or_404(Team, team1_id, "Team")
    get_or_404(Team, team2_id, "Team")


def create_match(data):
    """
    Schedule a new upcoming match

    Args:
        data: dict with tournament_id, team1_id, team2_id, match_date and
            optional location
    """
    fields = load_form(MatchForm, data)
    tournament_id = fields["tournament_id"]

    get_or_404(Tournament, tournament_id, "Tournament")
    _validate_teams(fields["team1_id"], fields["team2_id"])

    with atomic("create match") as session:
        match = Match(
            tournament_id=tournament_id,
            team1_id=fields["team1_id"],
            team2_id=fields["team2_id"],
            match_date=fields["match_date"],
            location=fields.get("location"),
            status=MatchStatus.UPCOMING,
        )
        session.add(match)

    logger.info(f"Created match {match.id} in tournament {tournament_id}")
    return match


def get_match(match_id):
    return get_or_404(Match, match_id, "Match")


def get_matches(status=None):
    """All matches, optionally filtered by status, in listing order"""
    query = Match.query

    if status:
        if status not in MatchStatus.ALL:
            raise ValidationError(f"Unknown match status '{status}'")
        query = query.filter_by(status=status)

    return Match.sort_for_listing(query.all())


def update_match(match_id, data):
    """
    Update match details. Results are recorded through the scoring service
    and teams can only change before the match starts.
    """
    match = get_or_404(Match, match_id, "Match")

    if any(field in data for field in RESULT_FIELDS):
        raise ValidationError(
            "Match results must be recorded through the result endpoint"
        )

    fields = load_form(MatchUpdateForm, data)

    if "team1_id" in fields or "team2_id" in fields:
        if match.status != MatchStatus.UPCOMING:
            raise InvalidStateError("Teams can only be changed before the match starts")
        team1_id = fields.get("team1_id") or match.team1_id
        team2_id = fields.get("team2_id") or match.team2_id
        _validate_teams(team1_id, team2_id)
        fields["team1_id"], fields["team2_id"] = team1_id, team2_id

    if "match_date" in fields and fields["match_date"] is None:
        raise ValidationError("Match date cannot be empty")

    with atomic(f"update match {match_id}"):
        for field, value in fields.items():
            setattr(match, field, value)

    return match


def set_match_status(match_id, status):
    """Move a match between non-completed states (upcoming, ongoing, tie, void)"""
    match = get_or_404(Match, match_id, "Match")
    status = load_form(MatchStatusForm, {"status": status})["status"]

    if status == MatchStatus.COMPLETED:
        raise ValidationError("Use the result endpoint to complete a match")
    if status == match.status:
        return match
    if status not in STATUS_TRANSITIONS[match.status]:
        raise InvalidStateError(
            f"Cannot change match status from {match.status} to {status}"
        )

    with atomic(f"set status of match {match_id}"):
        match.status = status

    logger.info(f"Match {match_id} is now {status}")
    return match


def start_match(match_id):
    """Close predictions by moving an upcoming match to ongoing"""
    match = get_or_404(Match, match_id, "Match")
    if match.status != MatchStatus.UPCOMING:
        raise InvalidStateError("Only upcoming matches can be changed to ongoing")
    return set_match_status(match_id, MatchStatus.ONGOING)


def delete_match(match_id):
    """Delete a match and its predictions; refused once points were awarded"""
    match = get_or_404(Match, match_id, "Match")

    if match.has_ledger_history():
        raise InvalidStateError(
            "Cannot delete a match that has awarded points; mark it void instead"
        )

    with atomic(f"delete match {match_id}") as session:
        session.delete(match)

    logger.info(f"Deleted match {match_id}")
