# core/api.py
"""Small helpers shared by the API views of every app."""
from .exceptions import ValidationError
from .identity import Caller


def _first_error(errors, prefix=None):
    """
    Walk DRF's nested error structure and return (field_path, message)
    for the first concrete message.
    """
    if isinstance(errors, dict):
        for key, value in errors.items():
            path = key if prefix is None else f"{prefix}.{key}"
            found = _first_error(value, path)
            if found is not None:
                return found
        return None
    if isinstance(errors, (list, tuple)):
        for index, value in enumerate(errors):
            if isinstance(value, (dict, list, tuple)):
                path = f"{prefix}[{index}]" if prefix else str(index)
                found = _first_error(value, path)
                if found is not None:
                    return found
            elif value:
                return prefix, str(value)
        return None
    return prefix, str(errors)


def validated_data(serializer):
    """
    Run a DRF serializer and surface the first field error as a domain
    ``ValidationError`` so every 400 carries the same shape.
    """
    if serializer.is_valid():
        return serializer.validated_data

    field, message = _first_error(serializer.errors) or (None, "Invalid input.")
    if field == "non_field_errors":
        field = None
    raise ValidationError(field, message, errors=serializer.errors)


def caller_for(request) -> Caller:
    return Caller.from_request(request)
