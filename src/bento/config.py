"""Configuration: frozen Config with a guarded ambient scope.

Configuration is resolved once and then flows as an immutable value. The only
knob today is which HTTP statuses count as success when classifying a
transport response.
"""

from __future__ import annotations

from contextlib import contextmanager
import contextvars
from dataclasses import dataclass, field, replace
import logging
import os
from typing import TYPE_CHECKING, Any

from bento._http import DEFAULT_SUCCESS_CODES, MAX_STATUS_CODE, MIN_STATUS_CODE
from bento.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Generator

log = logging.getLogger(__name__)

ENV_PREFIX = "BENTO_"
SUCCESS_CODES_ENV = f"{ENV_PREFIX}SUCCESS_CODES"

_DOTENV_LOADED: bool = False


@dataclass(frozen=True)
class Config:
    """Immutable configuration for response classification.

    Example:
        config = Config(success_codes=range(200, 400))
        with config_scope(config):
            response = classify(httpx.Response(304))  # Success
    """

    #: Statuses classified as ``Success``; everything else is ``Failure.Error``.
    success_codes: range = field(default=DEFAULT_SUCCESS_CODES)

    def __post_init__(self) -> None:
        """Validate the success range early for clear errors."""
        codes = self.success_codes
        if not isinstance(codes, range):
            raise ConfigurationError(
                f"success_codes must be a range, got {type(codes).__name__}",
                hint="Pass success_codes=range(200, 300).",
            )
        if len(codes) == 0:
            raise ConfigurationError(
                "success_codes must not be empty",
                hint="Use an inclusive-exclusive range such as range(200, 300).",
            )
        if codes[0] < MIN_STATUS_CODE or codes[-1] > MAX_STATUS_CODE:
            raise ConfigurationError(
                f"success_codes must stay within {MIN_STATUS_CODE}..{MAX_STATUS_CODE}, "
                f"got {codes[0]}..{codes[-1]}",
                hint="HTTP status codes are three digit numbers.",
            )

    def is_success(self, status_code: int) -> bool:
        """Return True when *status_code* falls inside the success range."""
        return status_code in self.success_codes

    @classmethod
    def from_env(cls) -> Config:
        """Build a Config from ``BENTO_*`` environment variables.

        A ``.env`` file is loaded once through python-dotenv before reading
        ``os.environ``. Unset variables fall back to dataclass defaults.
        """
        _try_load_dotenv()
        values: dict[str, Any] = {}
        raw = os.environ.get(SUCCESS_CODES_ENV)
        if raw is not None and raw.strip():
            values["success_codes"] = parse_status_range(raw)
        return cls(**values)

    def with_overrides(self, **overrides: Any) -> Config:
        """Return a copy with *overrides* applied and re-validated."""
        return replace(self, **overrides)


def parse_status_range(raw: str) -> range:
    """Parse ``"200-299"`` (inclusive) or ``"204"`` into a ``range``."""
    text = raw.strip()
    lo_text, sep, hi_text = text.partition("-")
    try:
        lo = int(lo_text)
        hi = int(hi_text) if sep else lo
    except ValueError:
        raise ConfigurationError(
            f"Invalid status range: {raw!r}",
            hint=f"Set {SUCCESS_CODES_ENV} to an inclusive range like '200-299'.",
        ) from None
    if hi < lo:
        raise ConfigurationError(
            f"Invalid status range: {raw!r} (upper bound below lower bound)",
            hint=f"Set {SUCCESS_CODES_ENV} to an inclusive range like '200-299'.",
        )
    return range(lo, hi + 1)


def _try_load_dotenv() -> None:
    """Load a ``.env`` file once per process."""
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    from dotenv import load_dotenv

    load_dotenv()
    _DOTENV_LOADED = True


# --- Ambient scope (guarded) ---

_AMBIENT: contextvars.ContextVar[Config | None] = contextvars.ContextVar(
    "bento_ambient_config", default=None
)


def current_config() -> Config:
    """Return the scoped Config, or one resolved from the environment."""
    cfg = _AMBIENT.get()
    if cfg is not None:
        return cfg
    return Config.from_env()


@contextmanager
def config_scope(
    cfg: Config | None = None, **overrides: Any
) -> Generator[Config]:
    """Run a block with a specific Config without touching global state.

    Thread-safe and async-safe: the scope is a ``ContextVar``, so tasks
    spawned inside it inherit the config and sibling tasks do not see it.

    Args:
        cfg: Config to activate. Defaults to the currently active one.
        **overrides: Field overrides applied on top of *cfg*.

    Yields:
        The Config active in this scope.
    """
    base = cfg if cfg is not None else current_config()
    active = base.with_overrides(**overrides) if overrides else base
    token = _AMBIENT.set(active)
    log.debug("Entered config scope: %s", active)
    try:
        yield active
    finally:
        _AMBIENT.reset(token)
