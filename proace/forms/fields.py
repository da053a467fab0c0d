"""
Fields for JSON request bodies

The stock WTForms fields expect browser form strings and coerce whatever
they receive. JSON bodies carry real types, so these fields accept only the
matching JSON type and report anything else as a field error.
"""

import re
from datetime import datetime, timezone

from wtforms import Field
from wtforms.fields import BooleanField, IntegerField, PasswordField, StringField
from wtforms.validators import StopValidation

CONTROL_CHARACTERS = re.compile(r"[\x00-\x1f\x7f-\x9f]")
CONTROL_CHARACTERS_MULTILINE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f-\x9f]")


def clean_line(value):
    """Drop control characters and surrounding whitespace; blank becomes None"""
    if not isinstance(value, str):
        return value
    return CONTROL_CHARACTERS.sub("", value).strip() or None


def clean_block(value):
    """Like clean_line but keeps line breaks and tabs"""
    if not isinstance(value, str):
        return value
    return CONTROL_CHARACTERS_MULTILINE.sub("", value).strip() or None


def lower(value):
    return value.lower() if isinstance(value, str) else value


class JSONFieldMixin:
    """Skip the validator chain once the value had the wrong type"""

    def pre_validate(self, form):
        if self.process_errors:
            raise StopValidation()


class StrictStringMixin(JSONFieldMixin):
    def process_formdata(self, valuelist):
        if not valuelist:
            return
        if not isinstance(valuelist[0], str):
            raise ValueError(self.gettext("Not a valid string."))
        self.data = valuelist[0]


class TextField(StrictStringMixin, StringField):
    pass


class SecretField(StrictStringMixin, PasswordField):
    pass


class StrictIntegerField(JSONFieldMixin, IntegerField):
    def process_formdata(self, valuelist):
        if not valuelist:
            return
        value = valuelist[0]
        if isinstance(value, bool) or not isinstance(value, int):
            self.data = None
            raise ValueError(self.gettext("Not a valid integer value."))
        self.data = value


class StrictBooleanField(JSONFieldMixin, BooleanField):
    def process_formdata(self, valuelist):
        if not valuelist:
            return
        if not isinstance(valuelist[0], bool):
            raise ValueError(self.gettext("Not a valid boolean value."))
        self.data = valuelist[0]


class IsoDateTimeField(JSONFieldMixin, Field):
    """ISO 8601 timestamp stored as naive UTC; an empty string clears it"""

    def process_formdata(self, valuelist):
        if not valuelist:
            return

        value = valuelist[0]
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, str):
            if not value.strip():
                self.data = None
                return
            try:
                parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
            except ValueError:
                raise ValueError(self.gettext("Not a valid ISO 8601 date."))
        else:
            raise ValueError(self.gettext("Not a valid ISO 8601 date."))

        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        self.data = parsed


class Provided:
    """Require a value; unlike InputRequired, 0 and False count"""

    field_flags = {"required": True}

    def __init__(self, message=None):
        self.message = message

    def __call__(self, form, field):
        if field.raw_data and field.data is not None:
            return

        field.errors[:] = []
        raise StopValidation(self.message or field.gettext("This field is required."))
