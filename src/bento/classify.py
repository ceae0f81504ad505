"""Classify a finished network attempt into an ``ApiResponse``.

An attempt is either a transport response (``httpx.Response`` or the
transport-neutral ``RawResponse``) or the exception raised while making it.
Classification is total: every supported attempt maps to exactly one
variant, and a body that fails to decode becomes ``Failure.Exception``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import logging
from typing import TYPE_CHECKING, Any

import httpx

from bento.config import current_config
from bento.response import FailureError, FailureException, Success

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from bento.response import ApiResponse

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawResponse:
    """A completed response from any transport.

    ``body`` is the already parsed payload used for a ``Success``;
    ``error_body`` is the raw payload kept for a ``Failure.Error``.
    """

    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None
    error_body: bytes | None = None


type Attempt = httpx.Response | RawResponse | BaseException
type Decoder = Callable[[httpx.Response], Any]


def _is_json_content_type(content_type: str) -> bool:
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def default_decode(response: httpx.Response) -> Any:
    """Decode a successful body: ``None`` if empty, JSON if declared, else text."""
    if not response.content:
        return None
    if _is_json_content_type(response.headers.get("content-type", "")):
        return response.json()
    return response.text


def _classify_transport(
    attempt: httpx.Response | RawResponse, decode: Decoder, success_codes: range
) -> ApiResponse[Any]:
    if isinstance(attempt, httpx.Response):
        headers = dict(attempt.headers)
        if attempt.status_code in success_codes:
            return Success(decode(attempt), status_code=attempt.status_code, headers=headers)
        try:
            error_body = attempt.content or None
        except httpx.ResponseNotRead:
            # Streamed and never read: the status alone still classifies it.
            error_body = None
        return FailureError(attempt.status_code, error_body=error_body, headers=headers)

    headers = dict(attempt.headers)
    if attempt.status_code in success_codes:
        return Success(attempt.body, status_code=attempt.status_code, headers=headers)
    return FailureError(attempt.status_code, error_body=attempt.error_body, headers=headers)


def classify(
    attempt: Attempt,
    *,
    decode: Decoder | None = None,
    success_codes: range | None = None,
) -> ApiResponse[Any]:
    """Turn one finished attempt into an ``ApiResponse``.

    Args:
        attempt: A transport response, or the exception the attempt raised.
        decode: Body decoder for successful ``httpx.Response`` objects.
            Defaults to ``default_decode``.
        success_codes: Statuses treated as success. Defaults to the active
            ``Config.success_codes``.

    Returns:
        ``Success`` for a success status, ``Failure.Error`` for any other
        status, ``Failure.Exception`` for an exception (the same object).

    Raises:
        TypeError: If *attempt* is none of the supported shapes.
    """
    if isinstance(attempt, BaseException):
        log.debug("Classified %s as Failure.Exception", type(attempt).__name__)
        return FailureException(attempt)

    if not isinstance(attempt, (httpx.Response, RawResponse)):
        raise TypeError(
            "attempt must be an httpx.Response, RawResponse or exception, "
            f"got {type(attempt).__name__}"
        )

    codes = success_codes if success_codes is not None else current_config().success_codes
    try:
        outcome = _classify_transport(attempt, decode or default_decode, codes)
    except Exception as exc:
        # Reading or decoding the body failed: the attempt did not complete.
        log.debug("Decoding HTTP %s response failed: %s", attempt.status_code, exc)
        return FailureException(exc)

    log.debug(
        "Classified HTTP %s response as %s", attempt.status_code, type(outcome).__name__
    )
    return outcome


def classify_call(
    factory: Callable[[], Attempt],
    *,
    decode: Decoder | None = None,
    success_codes: range | None = None,
) -> ApiResponse[Any]:
    """Call *factory* and classify its return value or raised exception."""
    try:
        attempt = factory()
    except Exception as exc:
        return classify(exc)
    return classify_returned(attempt, decode=decode, success_codes=success_codes)


def classify_returned(
    attempt: Any,
    *,
    decode: Decoder | None = None,
    success_codes: range | None = None,
) -> ApiResponse[Any]:
    """Classify whatever a call returned.

    Unlike ``classify``, a value that is not a supported attempt becomes a
    ``Failure.Exception`` wrapping the ``TypeError`` instead of raising.
    """
    try:
        return classify(attempt, decode=decode, success_codes=success_codes)
    except TypeError as exc:
        log.debug("Call returned an unsupported value: %s", exc)
        return FailureException(exc)


async def classify_call_async(
    factory: Callable[[], Awaitable[Attempt]],
    *,
    decode: Decoder | None = None,
    success_codes: range | None = None,
) -> ApiResponse[Any]:
    """Await *factory* and classify the outcome.

    ``asyncio.CancelledError`` is not an ``Exception`` and always propagates,
    so cancelling the caller is never mistaken for a failed request.
    """
    try:
        attempt = await factory()
    except Exception as exc:
        return classify(exc)
    return classify_returned(attempt, decode=decode, success_codes=success_codes)
