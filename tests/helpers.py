"""Test helpers (small, reusable doubles).

Keep this file tiny and purpose-built: it exists to prevent test suites from
growing lots of one-off operator and callback classes as coverage expands.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from bento import ApiResponseOperator, ApiResponseSuspendOperator


@dataclass
class RecordingOperator(ApiResponseOperator[Any]):
    """Operator that records which handler ran, and with what."""

    calls: list[tuple[str, Any]] = field(default_factory=list)

    def on_success(self, response: Any) -> None:
        self.calls.append(("success", response))

    def on_error(self, response: Any) -> None:
        self.calls.append(("error", response))

    def on_exception(self, response: Any) -> None:
        self.calls.append(("exception", response))


@dataclass
class RecordingSuspendOperator(ApiResponseSuspendOperator[Any]):
    """Async counterpart of ``RecordingOperator``."""

    calls: list[tuple[str, Any]] = field(default_factory=list)

    async def on_success(self, response: Any) -> None:
        self.calls.append(("success", response))

    async def on_error(self, response: Any) -> None:
        self.calls.append(("error", response))

    async def on_exception(self, response: Any) -> None:
        self.calls.append(("exception", response))


@dataclass
class Recorder:
    """Callable sink for procedure-style handlers."""

    name: str
    seen: list[Any] = field(default_factory=list)

    def __call__(self, value: Any) -> None:
        self.seen.append(value)


def procedure_recorders() -> tuple[Recorder, Recorder, Recorder]:
    """Return fresh success/error/exception recorders."""
    return Recorder("success"), Recorder("error"), Recorder("exception")
