from flask import request

from league.errors import ValidationError


def json_body() -> dict:
    """Request JSON as a dict; an empty body counts as ``{}``."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def require_int(data: dict, key: str):
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f'{key} is required and must be an integer')
    return value
