"""
Shared helpers for the route blueprints.

Service lookup from app.config, input sanitizing, and the mapping from
operation outcomes to HTTP status codes.
"""

from functools import wraps
from typing import Any, Dict, Optional

import bleach
from flask import current_app, jsonify, request, session

from core.exceptions import NotAuthorizedError, ValidationError
from models.results import Outcome


# Outcome -> HTTP status
OUTCOME_STATUS = {
    Outcome.OK: 200,
    Outcome.NOT_FOUND: 404,
    Outcome.NOT_READY: 409,
    Outcome.INVALID_CODE: 400,
    Outcome.CONFLICT: 409,
    Outcome.INVALID: 400,
}

MAX_TEXT_LENGTH = 200


def get_engine():
    return current_app.config["QUEUE_ENGINE"]


def get_directory():
    return current_app.config["ADMIN_DIRECTORY"]


def sanitize_text(text: Any, max_length: int = MAX_TEXT_LENGTH) -> str:
    """
    Sanitize user input text to prevent XSS and injection attacks.

    Args:
        text: Raw input value
        max_length: Maximum length to enforce

    Returns:
        Sanitized text safe for storage and display
    """
    if text is None:
        return ""

    text = bleach.clean(str(text).strip(), tags=[], strip=True)

    if max_length and len(text) > max_length:
        text = text[:max_length]

    return text


def request_data() -> Dict[str, Any]:
    """JSON body, or form fields for multipart/urlencoded requests."""
    if request.is_json:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data
    return request.form.to_dict()


def require_int(data: Dict[str, Any], field: str) -> int:
    try:
        return int(data[field])
    except KeyError:
        raise ValidationError(f"'{field}' is required", field)
    except (TypeError, ValueError):
        raise ValidationError(f"'{field}' must be a whole number", field)


def optional_text(data: Dict[str, Any], field: str) -> Optional[str]:
    value = sanitize_text(data.get(field))
    return value or None


def result_response(result):
    """JSON response for a JobOperationResult or AccountResult."""
    return jsonify(result.to_dict()), OUTCOME_STATUS[result.outcome]


# =============================================================================
# OPERATOR SESSION
# =============================================================================

OPERATOR_SESSION_KEY = "operator"


def remember_operator(op_session) -> None:
    """Tie the login to this client's cookie."""
    session[OPERATOR_SESSION_KEY] = op_session.to_dict()
    session.modified = True


def forget_operator() -> None:
    session.pop(OPERATOR_SESSION_KEY, None)


def require_operator_client(operation: str):
    """
    Return the operator session if this client is the one that opened it.

    Another client's login does not authorize this request, and neither
    does a cookie left over from a session that has since been replaced.

    Raises:
        NotAuthorizedError: If this client holds no current operator session
    """
    op_session = get_directory().require_operator(operation)
    if session.get(OPERATOR_SESSION_KEY) != op_session.to_dict():
        raise NotAuthorizedError(operation)
    return op_session


def operator_required(view):
    """Decorator for routes only the logged-in operator's client may call."""

    @wraps(view)
    def wrapped(*args, **kwargs):
        require_operator_client(view.__name__)
        return view(*args, **kwargs)

    return wrapped
