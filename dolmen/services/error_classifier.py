"""
Error classifier.

Maps a backend error code (PostgREST or Postgres SQLSTATE) to the message
shown to the admin.
"""
from collections.abc import Mapping
from typing import Any, Optional

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."
NETWORK_ERROR_MESSAGE = "Network error. Please check your connection and try again."

SESSION_EXPIRED_MESSAGE = "Your session has expired. Please sign in again."

ERROR_MESSAGES = {
    "PGRST116": "Access denied. Admin privileges required.",
    "23505": "A record with this information already exists.",
    "23503": "Invalid reference. The related record does not exist.",
    "23502": "A required field is missing.",
    "23514": "Invalid data format.",
    "PGRST301": SESSION_EXPIRED_MESSAGE,
    "PGRST302": SESSION_EXPIRED_MESSAGE,
}


def _field(error: Any, name: str) -> Optional[str]:
    if isinstance(error, Mapping):
        value = error.get(name)
    else:
        value = getattr(error, name, None)
    if value is None or value == "":
        return None
    return str(value)


def classify(error: Any) -> str:
    """
    Return the user-facing message for a backend error.

    Accepts anything carrying optional `code` and `message` fields, either
    as attributes (APIError, StoreError) or as mapping keys.
    """
    code = _field(error, "code")
    message = _field(error, "message")

    if code is not None and code in ERROR_MESSAGES:
        return ERROR_MESSAGES[code]
    return message or UNKNOWN_ERROR_MESSAGE
