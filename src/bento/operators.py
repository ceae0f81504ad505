"""Operator base classes for object-style dispatch over ``ApiResponse``.

An operator bundles the three handlers in one object, which suits handling
logic that is shared across many call sites (error reporting, metrics).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bento.response import FailureError, FailureException, Success


class ApiResponseOperator[T](ABC):
    """Synchronous handlers passed to ``ApiResponse.operator``."""

    @abstractmethod
    def on_success(self, response: Success[T]) -> None:
        """Handle a successful response."""

    @abstractmethod
    def on_error(self, response: FailureError[T]) -> None:
        """Handle a server-reported error."""

    @abstractmethod
    def on_exception(self, response: FailureException[T]) -> None:
        """Handle an attempt that raised."""


class ApiResponseSuspendOperator[T](ABC):
    """Async handlers passed to ``ApiResponse.operator_async``."""

    @abstractmethod
    async def on_success(self, response: Success[T]) -> None:
        """Handle a successful response."""

    @abstractmethod
    async def on_error(self, response: FailureError[T]) -> None:
        """Handle a server-reported error."""

    @abstractmethod
    async def on_exception(self, response: FailureException[T]) -> None:
        """Handle an attempt that raised."""
