import logging

from proace.exceptions import AccessDeniedError, InvalidStateError, ValidationError
from proace.forms import load_form
from proace.forms.matches import PredictionForm
from proace.models import Match, MatchStatus, Prediction
from proace.services.user_service import get_user_by_username
from proace.utils.db_utils import atomic, get_or_404

logger = logging.getLogger(__name__)


def submit_prediction(user, match_id, predicted_toss_winner_id, predicted_match_winner_id):
    """
    Create or overwrite a user's prediction for an upcoming match

    Args:
        user: the predicting User
        match_id: match being predicted
        predicted_toss_winner_id: team id or None to skip the toss pick
        predicted_match_winner_id: team id, required

    Returns:
        Prediction: the stored prediction
    """
    fields = load_form(
        PredictionForm,
        {
            "match_id": match_id,
            "predicted_toss_winner_id": predicted_toss_winner_id,
            "predicted_match_winner_id": predicted_match_winner_id,
        },
    )
    match = get_or_404(Match, fields["match_id"], "Match")

    if not user.is_verified:
        raise AccessDeniedError("Only verified users can make predictions")

    if not match.is_open_for_predictions:
        raise InvalidStateError("Predictions are closed for this match")

    tournament = match.tournament
    if not tournament.accepts_predictions_from(user):
        raise AccessDeniedError(
            "This is a premium tournament. Contact an admin for access"
        )

    match_winner_id = fields["predicted_match_winner_id"]
    toss_winner_id = fields["predicted_toss_winner_id"]

    if not match.involves_team(match_winner_id):
        raise ValidationError("Predicted match winner does not play in this match")
    if toss_winner_id is not None and not match.involves_team(toss_winner_id):
        raise ValidationError("Predicted toss winner does not play in this match")

    if tournament.hide_toss_predictions:
        toss_winner_id = None

    prediction = Prediction.query.filter_by(user_id=user.id, match_id=match.id).first()

    with atomic(f"save prediction of {user.username} for match {match.id}") as session:
        if prediction is None:
            prediction = Prediction(user_id=user.id, match_id=match.id)
            session.add(prediction)
        prediction.predicted_toss_winner_id = toss_winner_id
        prediction.predicted_match_winner_id = match_winner_id

    logger.info(f"User {user.username} predicted match {match.id}")
    return prediction


def get_user_predictions(user_id):
    """A user's predictions, ongoing and upcoming matches first, then by date"""
    predictions = (
        Prediction.query.join(Match, Prediction.match_id == Match.id)
        .filter(Prediction.user_id == user_id)
        .all()
    )

    def _key(prediction):
        match = prediction.match
        order = MatchStatus.SORT_ORDER.get(match.status, len(MatchStatus.ALL))
        return (order, match.match_date)

    return sorted(predictions, key=_key)


def get_match_predictions(match_id):
    match = get_or_404(Match, match_id, "Match")
    return match.predictions.order_by(Prediction.id).all()


def get_public_predictions(username):
    """
    A user's prediction history as other users see it. Toss picks stay
    hidden for tournaments that hide toss predictions.
    """
    user = get_user_by_username(username)

    history = []
    for prediction in get_user_predictions(user.id):
        row = prediction.to_dict(include_match=True)
        if prediction.match.tournament.hide_toss_predictions:
            row["predictedTossWinnerId"] = None
            row["predictedTossWinner"] = None
        history.append(row)
    return history
