"""Exceptions raised by the helpers.

Everything inherits from GWSHelperError so callers can catch the lot.  API
failures come through as googleapiclient HttpError and get translated by
handle_http_error(); lookups in a fetched document raise the more specific
not-found/range errors directly.
"""
from functools import wraps
import logging
from typing import Any, Optional

from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)


class GWSHelperError(Exception):
    """Base exception for all gwshelper errors.

    Attributes:
        message: Human-readable error description.
        resource_id: Optional document/file/event ID related to the error.
    """

    def __init__(self, message: str, resource_id: Optional[str] = None) -> None:
        self.message = message
        self.resource_id = resource_id
        super().__init__(self.format_message())

    def format_message(self) -> str:
        if self.resource_id:
            return f"{self.message} (id: {self.resource_id})"
        return self.message


class AuthenticationError(GWSHelperError):
    """No usable credentials, or Google rejected the ones we have."""
    pass


class ConfigError(GWSHelperError):
    """Bad or unreadable configuration."""
    pass


class NotFoundError(GWSHelperError):
    """The remote resource doesn't exist or isn't visible to us."""
    pass


class PermissionDeniedError(GWSHelperError):
    pass


class QuotaExceededError(GWSHelperError):
    pass


class TextNotFoundError(GWSHelperError):
    """A line, pattern or text run couldn't be located in a document."""

    def __init__(self, what: str, text: str, resource_id: Optional[str] = None) -> None:
        self.text = text
        super().__init__(f"{what} '{text}' not found", resource_id)


class InvalidRangeError(GWSHelperError):
    pass


class TableNotFoundError(GWSHelperError):
    pass


class PermissionNotFoundError(GWSHelperError):
    def __init__(self, email: str, resource_id: Optional[str] = None) -> None:
        self.email = email
        super().__init__(f"no permission found for email {email}", resource_id)


def handle_http_error(error: Any, action: str = "API call",
                      resource_id: Optional[str] = None) -> GWSHelperError:
    """Convert a googleapiclient HttpError to one of ours.

    Args:
        error: The HttpError from googleapiclient.
        action: What we were trying to do, prefixed to the message.
        resource_id: Optional ID for context.

    Returns:
        An appropriate GWSHelperError subclass.
    """
    try:
        status = int(error.resp.status)
    except (AttributeError, TypeError, ValueError):
        return GWSHelperError(f"{action} failed: {error}", resource_id)

    reason = getattr(error, "reason", "") or str(error)
    if status == 401:
        return AuthenticationError(f"{action} failed, authentication rejected: {reason}", resource_id)
    if status == 403:
        return PermissionDeniedError(f"{action} failed, access denied: {reason}", resource_id)
    if status == 404:
        return NotFoundError(f"{action} failed, not found: {reason}", resource_id)
    if status == 429:
        return QuotaExceededError(f"{action} failed, quota exceeded: {reason}", resource_id)
    return GWSHelperError(f"{action} failed (HTTP {status}): {reason}", resource_id)


def api_call(action: str):
    """
    Decorator for helpers that talk to the API.  Any HttpError escaping the
    wrapped function is re-raised as a GWSHelperError with the action
    prepended.  The first positional argument is taken as the resource ID
    when it's a string, which is the case for nearly every helper.
    """
    def _inner_decorator(f):
        @wraps(f)
        def wrapped(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except HttpError as e:
                rid = args[0] if args and isinstance(args[0], str) else None
                err = handle_http_error(e, action, rid)
                logger.debug("%s: %s", f.__qualname__, err)
                raise err from e
        return wrapped
    return _inner_decorator
