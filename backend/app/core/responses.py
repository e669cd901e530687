"""Failure envelopes shared by every router.

Failures are reported as ``{"success": false, "message": ...}``; validation
failures add ``errors``, a map from dotted field path to messages.
"""

from typing import Any, Iterable, Mapping, Optional

from fastapi.responses import JSONResponse

# Pydantic error types mapped to the rule names used in field messages
_RULES_BY_ERROR_TYPE = {
    "missing": "required",
    "string_too_short": "required",
    "string_type": "string",
    "string_too_long": "max",
    "email": "email",
    "enum": "in",
    "literal_error": "in",
    "uuid_parsing": "uuid",
    "uuid_type": "uuid",
    "model_attributes_type": "array",
    "model_type": "array",
    "dict_type": "array",
}

# Location prefixes that are not part of the field name
_LOCATION_PREFIXES = {"body", "query", "path"}


def failure_response(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, **extra},
    )


def field_path(loc: Iterable[Any]) -> str:
    parts = list(loc)
    if parts and parts[0] in _LOCATION_PREFIXES:
        parts = parts[1:]
    return ".".join(str(p) for p in parts) or "body"


def validation_failure_response(
    errors: Iterable[Mapping[str, Any]],
    messages: Mapping[str, str],
) -> JSONResponse:
    """Build the 422 envelope from pydantic error dicts.

    Known ``<field>.<rule>`` pairs use the wording in ``messages``; anything
    else falls back to pydantic's own message.
    """
    grouped: dict[str, list[str]] = {}
    for error in errors:
        path = field_path(error.get("loc", ()))
        rule = _RULES_BY_ERROR_TYPE.get(error.get("type", ""))
        message: Optional[str] = messages.get(f"{path}.{rule}") if rule else None
        if message is None:
            message = error.get("msg", "Invalid value.")
        grouped.setdefault(path, [])
        if message not in grouped[path]:
            grouped[path].append(message)

    return field_errors_response(grouped)


def field_errors_response(errors: Mapping[str, list[str]]) -> JSONResponse:
    all_messages = [m for field_messages in errors.values() for m in field_messages]
    message = all_messages[0] if all_messages else "The given data was invalid."
    if len(all_messages) > 1:
        remaining = len(all_messages) - 1
        message += f" (and {remaining} more error{'s' if remaining > 1 else ''})"
    return failure_response(422, message, errors=dict(errors))


def error_response(exc: Exception) -> JSONResponse:
    """Envelope for a raised billing error.

    Errors that name a request field are reported like validation failures.
    """
    status_code = getattr(exc, "status_code", 500)
    message = getattr(exc, "public_message", None) or f"An error occurred: {exc}"
    field = getattr(exc, "field", None)
    if field:
        return field_errors_response({field: [message]})
    return failure_response(status_code, message)
