from wtforms.validators import DataRequired, Length, Optional, ValidationError

from proace.forms import JSONForm
from proace.forms.fields import (
    IsoDateTimeField,
    StrictBooleanField,
    TextField,
    clean_block,
    clean_line,
)
from proace.models import Team, Tournament


class TeamForm(JSONForm):
    name = TextField(
        "Team name",
        filters=[clean_line],
        validators=[
            DataRequired(message="Team name is required"),
            Length(max=100, message="Team name must not exceed 100 characters"),
        ],
    )
    logo_url = TextField(
        "Logo URL", filters=[clean_line], validators=[Optional(), Length(max=500)]
    )

    def __init__(self, team=None, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.team = team

    def validate_name(self, name):
        duplicate = Team.query.filter_by(name=name.data).first()
        if duplicate is not None and duplicate is not self.team:
            raise ValidationError(f"Team '{name.data}' already exists")


class TeamUpdateForm(TeamForm):
    name = TextField(
        "Team name",
        filters=[clean_line],
        validators=[
            Optional(),
            Length(max=100, message="Team name must not exceed 100 characters"),
        ],
    )


class TournamentForm(JSONForm):
    name = TextField(
        "Tournament name",
        filters=[clean_line],
        validators=[
            DataRequired(message="Tournament name is required"),
            Length(max=150, message="Tournament name must not exceed 150 characters"),
        ],
    )
    description = TextField(
        "Description", filters=[clean_block], validators=[Optional(), Length(max=5000)]
    )
    image_url = TextField(
        "Image URL", filters=[clean_line], validators=[Optional(), Length(max=500)]
    )
    start_date = IsoDateTimeField("Start date", validators=[Optional()])
    end_date = IsoDateTimeField("End date", validators=[Optional()])
    is_premium = StrictBooleanField("Premium")
    hide_toss_predictions = StrictBooleanField("Hide toss predictions")

    def __init__(self, tournament=None, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tournament = tournament

    def validate_name(self, name):
        duplicate = Tournament.query.filter_by(name=name.data).first()
        if duplicate is not None and duplicate is not self.tournament:
            raise ValidationError(f"Tournament '{name.data}' already exists")


class TournamentUpdateForm(TournamentForm):
    """All fields optional; only the ones sent are changed"""

    name = TextField(
        "Tournament name",
        filters=[clean_line],
        validators=[
            Optional(),
            Length(max=150, message="Tournament name must not exceed 150 characters"),
        ],
    )
