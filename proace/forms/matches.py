from wtforms.validators import AnyOf, Length, Optional

from proace.forms import JSONForm
from proace.forms.fields import (
    IsoDateTimeField,
    Provided,
    StrictIntegerField,
    TextField,
    clean_block,
    clean_line,
)
from proace.models import MatchStatus


class MatchForm(JSONForm):
    tournament_id = StrictIntegerField(
        "Tournament", validators=[Provided(message="Tournament is required")]
    )
    team1_id = StrictIntegerField(
        "Team 1", validators=[Provided(message="Team 1 is required")]
    )
    team2_id = StrictIntegerField(
        "Team 2", validators=[Provided(message="Team 2 is required")]
    )
    match_date = IsoDateTimeField(
        "Match date", validators=[Provided(message="Match date is required")]
    )
    location = TextField(
        "Location", filters=[clean_line], validators=[Optional(), Length(max=200)]
    )


class MatchUpdateForm(JSONForm):
    team1_id = StrictIntegerField("Team 1", validators=[Optional()])
    team2_id = StrictIntegerField("Team 2", validators=[Optional()])
    match_date = IsoDateTimeField("Match date", validators=[Optional()])
    location = TextField(
        "Location", filters=[clean_line], validators=[Optional(), Length(max=200)]
    )
    team1_score = TextField(
        "Team 1 score", filters=[clean_line], validators=[Optional(), Length(max=50)]
    )
    team2_score = TextField(
        "Team 2 score", filters=[clean_line], validators=[Optional(), Length(max=50)]
    )
    result_summary = TextField(
        "Result summary",
        filters=[clean_block],
        validators=[Optional(), Length(max=500)],
    )


class MatchResultForm(JSONForm):
    toss_winner_id = StrictIntegerField("Toss winner", validators=[Optional()])
    match_winner_id = StrictIntegerField("Match winner", validators=[Optional()])
    team1_score = TextField(
        "Team 1 score", filters=[clean_line], validators=[Optional(), Length(max=50)]
    )
    team2_score = TextField(
        "Team 2 score", filters=[clean_line], validators=[Optional(), Length(max=50)]
    )
    result_summary = TextField(
        "Result summary",
        filters=[clean_block],
        validators=[Optional(), Length(max=500)],
    )


class MatchStatusForm(JSONForm):
    status = TextField(
        "Status",
        validators=[
            Provided(message="Status is required"),
            AnyOf(MatchStatus.ALL, message="Unknown match status"),
        ],
    )


class PredictionForm(JSONForm):
    match_id = StrictIntegerField(
        "Match", validators=[Provided(message="Match is required")]
    )
    predicted_toss_winner_id = StrictIntegerField(
        "Predicted toss winner", validators=[Optional()]
    )
    predicted_match_winner_id = StrictIntegerField(
        "Predicted match winner",
        validators=[Provided(message="Predicted match winner is required")],
    )
