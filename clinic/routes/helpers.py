from flask import request

from clinic.errors import ValidationFailed


def parse_body(schema):
    """Validate the JSON request body against a pydantic model."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationFailed("Request body must be a JSON object")
    # pydantic.ValidationError propagates to the app-level handler.
    return schema.model_validate(data)
