"""
Request forms

Services validate their input through these forms, so the JSON API, the
management CLI and direct service calls share one set of rules. Input
arrives as a plain dict and load_form() turns the first failing field into
a ValidationError.
"""

from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict

from proace.exceptions import ValidationError


class JSONForm(FlaskForm):
    """Base form for JSON bodies; authentication is the session's job"""

    class Meta:
        csrf = False

    def first_error(self):
        for field in self:
            if not field.errors:
                continue
            message = field.errors[0]
            if not message.startswith(field.label.text):
                message = f"{field.label.text}: {message}"
            return message
        return "Invalid request"


def load_form(form_class, data, **kwargs):
    """
    Validate a dict with a form

    Args:
        form_class: JSONForm subclass to validate with
        data: dict of field name to value; None values count as missing
        **kwargs: passed to the form constructor

    Returns:
        dict of cleaned values for the form fields present in ``data``

    Raises:
        ValidationError: with the first field error
    """
    formdata = MultiDict(
        [(key, value) for key, value in data.items() if value is not None]
    )
    form = form_class(formdata=formdata, **kwargs)

    if not form.validate():
        raise ValidationError(form.first_error())

    return {name: form[name].data for name in data if name in form}
