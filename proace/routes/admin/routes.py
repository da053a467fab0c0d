import logging
from functools import wraps

from flask import jsonify, request
from flask_login import current_user, login_required

from proace.exceptions import AccessDeniedError, ValidationError
from proace.routes import json_body
from proace.routes.admin import bp
from proace.services import (
    match_service,
    prediction_service,
    scoring_service,
    settings_service,
    team_service,
    ticket_service,
    tournament_service,
    user_service,
)

logger = logging.getLogger(__name__)


def admin_required(f):
    """Require a logged in admin; anyone else gets a 403"""

    @wraps(f)
    @login_required
    def decorated_function(*args, **kwargs):
        if not current_user.is_admin:
            logger.warning(
                f"Non-admin user {current_user.username} tried to access {request.path}"
            )
            raise AccessDeniedError("Admin access required")
        return f(*args, **kwargs)

    return decorated_function


# Teams


@bp.route("/teams", methods=["POST"])
@admin_required
def create_team():
    data = json_body()
    team = team_service.create_team(data.get("name"), data.get("logo_url"))
    return jsonify(team.to_dict()), 201


@bp.route("/teams/<int:team_id>", methods=["PUT"])
@admin_required
def update_team(team_id):
    data = json_body()
    team = team_service.update_team(team_id, data.get("name"), data.get("logo_url"))
    return jsonify(team.to_dict())


@bp.route("/teams/<int:team_id>", methods=["DELETE"])
@admin_required
def delete_team(team_id):
    team_service.delete_team(team_id)
    return jsonify({"message": "Team deleted"})


@bp.route("/teams/<int:team_id>/tournaments")
@admin_required
def team_tournaments(team_id):
    tournaments = team_service.get_team_tournaments(team_id)
    return jsonify([tournament.to_dict() for tournament in tournaments])


@bp.route("/teams/seed", methods=["POST"])
@admin_required
def seed_teams():
    created = team_service.seed_default_teams()
    return jsonify({"created": created})


# Tournaments


@bp.route("/tournaments", methods=["POST"])
@admin_required
def create_tournament():
    tournament = tournament_service.create_tournament(json_body())
    return jsonify(tournament.to_dict()), 201


@bp.route("/tournaments/<int:tournament_id>", methods=["PUT"])
@admin_required
def update_tournament(tournament_id):
    tournament = tournament_service.update_tournament(tournament_id, json_body())
    return jsonify(tournament.to_dict())


@bp.route("/tournaments/<int:tournament_id>", methods=["DELETE"])
@admin_required
def delete_tournament(tournament_id):
    tournament_service.delete_tournament(tournament_id)
    return jsonify({"message": "Tournament deleted"})


@bp.route("/tournaments/<int:tournament_id>/teams/<int:team_id>", methods=["POST"])
@admin_required
def add_tournament_team(tournament_id, team_id):
    tournament_service.add_team_to_tournament(tournament_id, team_id)
    teams = tournament_service.get_tournament_teams(tournament_id)
    return jsonify([team.to_dict() for team in teams])


@bp.route("/tournaments/<int:tournament_id>/teams/<int:team_id>", methods=["DELETE"])
@admin_required
def remove_tournament_team(tournament_id, team_id):
    tournament_service.remove_team_from_tournament(tournament_id, team_id)
    teams = tournament_service.get_tournament_teams(tournament_id)
    return jsonify([team.to_dict() for team in teams])


@bp.route("/tournaments/<int:tournament_id>/premium-users")
@admin_required
def premium_users(tournament_id):
    users = tournament_service.get_premium_users(tournament_id)
    return jsonify([user.to_dict() for user in users])


@bp.route(
    "/tournaments/<int:tournament_id>/premium-users/<int:user_id>", methods=["POST"]
)
@admin_required
def add_premium_user(tournament_id, user_id):
    tournament_service.add_premium_user(tournament_id, user_id)
    users = tournament_service.get_premium_users(tournament_id)
    return jsonify([user.to_dict() for user in users])


@bp.route(
    "/tournaments/<int:tournament_id>/premium-users/<int:user_id>", methods=["DELETE"]
)
@admin_required
def remove_premium_user(tournament_id, user_id):
    tournament_service.remove_premium_user(tournament_id, user_id)
    users = tournament_service.get_premium_users(tournament_id)
    return jsonify([user.to_dict() for user in users])


# Matches


@bp.route("/matches", methods=["POST"])
@admin_required
def create_match():
    match = match_service.create_match(json_body())
    return jsonify(match.to_dict()), 201


@bp.route("/matches/<int:match_id>", methods=["PUT"])
@admin_required
def update_match(match_id):
    match = match_service.update_match(match_id, json_body())
    return jsonify(match.to_dict())


@bp.route("/matches/<int:match_id>", methods=["DELETE"])
@admin_required
def delete_match(match_id):
    match_service.delete_match(match_id)
    return jsonify({"message": "Match deleted"})


@bp.route("/matches/<int:match_id>/start", methods=["POST"])
@admin_required
def start_match(match_id):
    return jsonify(match_service.start_match(match_id).to_dict())


@bp.route("/matches/<int:match_id>/status", methods=["PATCH"])
@admin_required
def set_match_status(match_id):
    data = json_body()
    match = match_service.set_match_status(match_id, data.get("status"))
    return jsonify(match.to_dict())


@bp.route("/matches/<int:match_id>/result", methods=["PATCH"])
@admin_required
def match_result(match_id):
    """Record the result of a match and score its predictions"""
    data = json_body()

    if data.get("match_winner_id") is None and data.get("toss_winner_id") is None:
        raise ValidationError("A toss winner or match winner is required")

    match, summary = scoring_service.update_match_result(
        match_id,
        data.get("toss_winner_id"),
        data.get("match_winner_id"),
        team1_score=data.get("team1_score"),
        team2_score=data.get("team2_score"),
        result_summary=data.get("result_summary"),
    )
    return jsonify({"match": match.to_dict(), "scoring": summary})


@bp.route("/matches/<int:match_id>/rescore", methods=["POST"])
@admin_required
def rescore_match(match_id):
    return jsonify(scoring_service.rescore_match(match_id))


@bp.route("/matches/<int:match_id>/predictions")
@admin_required
def match_predictions(match_id):
    predictions = prediction_service.get_match_predictions(match_id)
    return jsonify([prediction.to_dict() for prediction in predictions])


# Users


@bp.route("/users")
@admin_required
def users():
    return jsonify(
        [user.to_dict(include_private=True) for user in user_service.get_all_users()]
    )


@bp.route("/users", methods=["POST"])
@admin_required
def create_user():
    data = json_body()
    user = user_service.create_user(
        data.get("username"),
        data.get("password"),
        email=data.get("email"),
        display_name=data.get("display_name"),
        is_admin=data.get("is_admin") is True,
        is_verified=data.get("is_verified") is True,
    )
    return jsonify(user.to_dict(include_private=True)), 201


@bp.route("/users/<int:user_id>/verify", methods=["PATCH"])
@admin_required
def verify_user(user_id):
    data = request.get_json(silent=True) or {}
    user = user_service.set_verified(user_id, data.get("verified", True))
    return jsonify(user.to_dict(include_private=True))


@bp.route("/users/<int:user_id>/points", methods=["PUT"])
@admin_required
def adjust_points(user_id):
    data = json_body()
    user = scoring_service.adjust_user_points(
        user_id, data.get("points"), reason=data.get("reason")
    )
    return jsonify(user.to_dict(include_private=True))


@bp.route("/users/<int:user_id>", methods=["DELETE"])
@admin_required
def delete_user(user_id):
    if user_id == current_user.id:
        raise ValidationError("Admins cannot delete their own account")
    user_service.delete_user(user_id)
    return jsonify({"message": "User deleted"})


@bp.route("/points/reconcile", methods=["POST"])
@admin_required
def reconcile_points():
    drifted = scoring_service.reconcile_user_points()
    return jsonify(
        {
            "reconciled": len(drifted),
            "users": drifted,
        }
    )


# Support tickets


@bp.route("/tickets")
@admin_required
def tickets():
    tickets = ticket_service.get_all_tickets(request.args.get("status"))
    return jsonify([ticket.to_dict() for ticket in tickets])


@bp.route("/tickets/<int:ticket_id>", methods=["PATCH"])
@admin_required
def update_ticket(ticket_id):
    data = json_body()
    ticket = ticket_service.update_ticket(
        ticket_id,
        status=data.get("status"),
        priority=data.get("priority"),
        assigned_to_user_id=data.get("assigned_to_user_id"),
    )
    return jsonify(ticket.to_dict(include_messages=True))


# Site settings


@bp.route("/settings/<key>", methods=["PUT"])
@admin_required
def update_setting(key):
    data = json_body()
    if "value" not in data:
        raise ValidationError("value is required")
    return jsonify(settings_service.update_setting(key, data["value"]).to_dict())
