from wtforms.validators import (
    DataRequired,
    Email,
    Length,
    NumberRange,
    Optional,
    Regexp,
    ValidationError,
)

from proace.forms import JSONForm
from proace.forms.fields import (
    Provided,
    SecretField,
    StrictIntegerField,
    TextField,
    clean_line,
    lower,
)
from proace.models import User

PASSWORD_RULES = [
    Length(min=8, message="Password must be at least 8 characters long"),
    Regexp(
        r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d).*$",
        message="Password must contain at least one uppercase letter, one lowercase letter, and one number",
    ),
]


class RegistrationForm(JSONForm):
    username = TextField(
        "Username",
        filters=[clean_line],
        validators=[
            DataRequired(message="Username is required"),
            Length(
                min=3, max=20, message="Username must be between 3 and 20 characters"
            ),
            Regexp(
                r"^[a-zA-Z0-9_]+$",
                message="Username can only contain letters, numbers, and underscores",
            ),
        ],
    )
    password = SecretField(
        "Password",
        validators=[DataRequired(message="Password is required")] + PASSWORD_RULES,
    )
    email = TextField(
        "Email",
        filters=[clean_line, lower],
        validators=[Optional(), Length(max=120), Email()],
    )
    display_name = TextField(
        "Display name", filters=[clean_line], validators=[Optional(), Length(max=100)]
    )

    def validate_username(self, username):
        if "admin" in username.data.lower() and username.data != "admin":
            raise ValidationError("Username cannot impersonate admin account")
        if User.get_by_username(username.data):
            raise ValidationError("Username already exists")

    def validate_email(self, email):
        if User.query.filter_by(email=email.data).first():
            raise ValidationError("Email already registered")


class ProfileForm(JSONForm):
    display_name = TextField(
        "Display name", filters=[clean_line], validators=[Optional(), Length(max=100)]
    )
    email = TextField(
        "Email",
        filters=[clean_line, lower],
        validators=[Optional(), Length(max=120), Email()],
    )
    profile_image = TextField(
        "Profile image", filters=[clean_line], validators=[Optional(), Length(max=500)]
    )
    password = SecretField("Password", validators=[Optional()] + PASSWORD_RULES)

    def __init__(self, user, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.user = user

    def validate_email(self, email):
        duplicate = User.query.filter(
            User.email == email.data, User.id != self.user.id
        ).first()
        if duplicate:
            raise ValidationError("Email already registered")


class ChangePasswordForm(JSONForm):
    current_password = SecretField(
        "Current password",
        validators=[DataRequired(message="Current password is required")],
    )
    new_password = SecretField(
        "New password",
        validators=[DataRequired(message="New password is required")] + PASSWORD_RULES,
    )


class PointsAdjustmentForm(JSONForm):
    points = StrictIntegerField(
        "Points",
        validators=[
            Provided(message="Points are required"),
            NumberRange(min=0, message="Points must not be negative"),
        ],
    )
    reason = TextField(
        "Reason", filters=[clean_line], validators=[Optional(), Length(max=200)]
    )
