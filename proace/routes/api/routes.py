from flask import current_app, jsonify, request
from flask_login import current_user, login_required

from proace.routes import json_body
from proace.routes.api import bp
from proace.services import (
    leaderboard_service,
    match_service,
    prediction_service,
    settings_service,
    team_service,
    ticket_service,
    tournament_service,
    user_service,
)

PROFILE_FIELDS = ("display_name", "email", "profile_image")


def _default_timeframe():
    return request.args.get("timeframe") or current_app.config["DEFAULT_TIMEFRAME"]


@bp.route("/health")
def health():
    return jsonify({"status": "ok"})


@bp.route("/leaderboard")
def leaderboard():
    """Global leaderboard, or a tournament's when tournamentId is given"""
    timeframe = _default_timeframe()
    tournament_id = request.args.get("tournamentId", type=int)

    if tournament_id is not None:
        entries = leaderboard_service.get_tournament_leaderboard(
            tournament_id, timeframe
        )
    else:
        entries = leaderboard_service.get_leaderboard(timeframe)

    return jsonify([entry.to_dict() for entry in entries])


@bp.route("/teams")
def teams():
    return jsonify([team.to_dict() for team in team_service.get_all_teams()])


@bp.route("/tournaments")
def tournaments():
    return jsonify(
        [tournament.to_dict() for tournament in tournament_service.get_all_tournaments()]
    )


@bp.route("/tournaments/<int:tournament_id>")
def tournament_detail(tournament_id):
    tournament = tournament_service.get_tournament(tournament_id)
    return jsonify(tournament.to_dict())


@bp.route("/tournaments/<int:tournament_id>/matches")
def tournament_matches(tournament_id):
    matches = tournament_service.get_tournament_matches(tournament_id)
    return jsonify([match.to_dict() for match in matches])


@bp.route("/tournaments/<int:tournament_id>/teams")
def tournament_teams(tournament_id):
    teams = tournament_service.get_tournament_teams(tournament_id)
    return jsonify([team.to_dict() for team in teams])


@bp.route("/tournaments/<int:tournament_id>/leaderboard")
def tournament_leaderboard(tournament_id):
    entries = leaderboard_service.get_tournament_leaderboard(
        tournament_id, _default_timeframe()
    )
    return jsonify([entry.to_dict() for entry in entries])


@bp.route("/tournaments/<int:tournament_id>/analysis")
def tournament_analysis(tournament_id):
    return jsonify(leaderboard_service.get_tournament_analysis(tournament_id))


@bp.route("/tournaments/<int:tournament_id>/matches-analysis")
def tournament_matches_analysis(tournament_id):
    """Pick splits and per-user correctness for completed matches"""
    return jsonify(leaderboard_service.get_tournament_matches_analysis(tournament_id))


@bp.route("/tournaments/<int:tournament_id>/premium-access")
@login_required
def tournament_premium_access(tournament_id):
    return jsonify(tournament_service.get_premium_access(tournament_id, current_user))


@bp.route("/matches")
def matches():
    """All matches, live first, optionally filtered by ?status="""
    matches = match_service.get_matches(request.args.get("status"))
    return jsonify([match.to_dict() for match in matches])


@bp.route("/matches/<int:match_id>")
def match_detail(match_id):
    return jsonify(match_service.get_match(match_id).to_dict())


@bp.route("/matches/<int:match_id>/prediction-stats")
def match_prediction_stats(match_id):
    match = match_service.get_match(match_id)
    return jsonify(match.get_prediction_stats())


@bp.route("/predictions")
@login_required
def user_predictions():
    predictions = prediction_service.get_user_predictions(current_user.id)
    return jsonify([p.to_dict(include_match=True) for p in predictions])


@bp.route("/predictions", methods=["POST"])
@login_required
def submit_prediction():
    data = json_body()
    prediction = prediction_service.submit_prediction(
        current_user,
        data.get("match_id"),
        data.get("predicted_toss_winner_id"),
        data.get("predicted_match_winner_id"),
    )
    return jsonify(prediction.to_dict()), 201


@bp.route("/users/<username>")
def user_profile(username):
    viewer = current_user if current_user.is_authenticated else None
    return jsonify(user_service.get_public_profile(username, viewer=viewer))


@bp.route("/users/<username>/predictions")
def user_prediction_history(username):
    return jsonify(prediction_service.get_public_predictions(username))


@bp.route("/user")
@login_required
def me():
    return jsonify(current_user.to_dict(include_private=True))


@bp.route("/profile", methods=["PATCH"])
@login_required
def update_profile():
    data = json_body()
    changes = {key: value for key, value in data.items() if key in PROFILE_FIELDS}
    user = user_service.update_user(current_user.id, changes)
    return jsonify(user.to_dict(include_private=True))


@bp.route("/profile/change-password", methods=["POST"])
@login_required
def change_password():
    data = json_body()
    user_service.change_password(
        current_user.id, data.get("current_password"), data.get("new_password")
    )
    return jsonify({"message": "Password updated successfully"})


@bp.route("/tickets")
@login_required
def tickets():
    return jsonify(
        [ticket.to_dict() for ticket in ticket_service.get_user_tickets(current_user)]
    )


@bp.route("/tickets", methods=["POST"])
@login_required
def create_ticket():
    data = json_body()
    ticket = ticket_service.create_ticket(
        current_user,
        data.get("subject"),
        data.get("message"),
        data.get("priority"),
    )
    return jsonify(ticket.to_dict(include_messages=True)), 201


@bp.route("/tickets/<int:ticket_id>")
@login_required
def ticket_detail(ticket_id):
    ticket = ticket_service.get_ticket(ticket_id, current_user)
    return jsonify(ticket.to_dict(include_messages=True))


@bp.route("/tickets/<int:ticket_id>/messages", methods=["POST"])
@login_required
def ticket_reply(ticket_id):
    data = json_body()
    message = ticket_service.add_message(ticket_id, current_user, data.get("message"))
    return jsonify(message.to_dict()), 201


@bp.route("/settings/<key>")
def setting(key):
    return jsonify(settings_service.get_setting(key).to_dict())
