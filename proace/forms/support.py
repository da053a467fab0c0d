from wtforms.validators import AnyOf, DataRequired, Length, Optional

from proace.forms import JSONForm
from proace.forms.fields import StrictIntegerField, TextField, clean_block, clean_line
from proace.models import TicketPriority, TicketStatus


class TicketForm(JSONForm):
    subject = TextField(
        "Subject",
        filters=[clean_line],
        validators=[DataRequired(message="Subject is required"), Length(max=200)],
    )
    message = TextField(
        "Message",
        filters=[clean_block],
        validators=[DataRequired(message="Message is required"), Length(max=5000)],
    )
    priority = TextField(
        "Priority",
        validators=[
            Optional(),
            AnyOf(TicketPriority.ALL, message="Unknown ticket priority"),
        ],
    )


class TicketMessageForm(JSONForm):
    message = TextField(
        "Message",
        filters=[clean_block],
        validators=[DataRequired(message="Message is required"), Length(max=5000)],
    )


class TicketUpdateForm(JSONForm):
    status = TextField(
        "Status",
        validators=[Optional(), AnyOf(TicketStatus.ALL, message="Unknown ticket status")],
    )
    priority = TextField(
        "Priority",
        validators=[
            Optional(),
            AnyOf(TicketPriority.ALL, message="Unknown ticket priority"),
        ],
    )
    assigned_to_user_id = StrictIntegerField("Assignee", validators=[Optional()])


class SettingForm(JSONForm):
    key = TextField(
        "Setting key",
        filters=[clean_line],
        validators=[DataRequired(message="Setting key is required"), Length(max=100)],
    )
    value = TextField("Value", validators=[Optional(), Length(max=5000)])
