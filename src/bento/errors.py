"""Exception hierarchy for Bento."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


class BentoError(Exception):
    """Base exception for all Bento errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(BentoError):
    """Configuration validation or resolution failed."""


_HTTP_ERROR_HINTS = {
    401: "Verify the credentials sent with the request.",
    403: "Check permissions for the requested resource.",
    404: "Resource not found or endpoint invalid.",
    429: "Rate limit exceeded; wait and retry.",
    500: "Server internal error; retry later.",
    502: "Bad gateway; an upstream service failed.",
    503: "Service unavailable; the server might be overloaded.",
    504: "Gateway timeout; an upstream service did not answer in time.",
}


def get_http_error_hint(status_code: int) -> str | None:
    """Return an actionable hint for a given HTTP status code."""
    return _HTTP_ERROR_HINTS.get(status_code)


class APIError(BentoError):
    """A server-reported failure surfaced as an exception.

    Raised by ``get_or_throw()`` on a ``Failure.Error`` outcome. The text is
    the failure's ``message()``; the raw status and body stay attached for
    callers that catch it.
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        status_code: int | None = None,
        error_body: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        if hint is None and status_code is not None:
            hint = get_http_error_hint(status_code)
        super().__init__(message, hint=hint)
        self.status_code = status_code
        self.error_body = error_body
        self.headers = dict(headers) if headers is not None else {}
