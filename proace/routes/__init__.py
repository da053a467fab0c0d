import re

from flask import request

from proace.exceptions import ValidationError

CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def json_body():
    """Request JSON object with camelCase keys converted to snake_case"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return {CAMEL_BOUNDARY.sub("_", key).lower(): value for key, value in data.items()}
