"""Model mappers: turn a response variant into a caller-defined model.

Anything accepting a mapper takes either an object with a ``map`` method
(``SuccessModelMapper`` / ``ErrorModelMapper``) or a plain callable of the
same shape. The pydantic-backed helpers cover the common case of validating
a JSON payload into a model.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import TypeAdapter

if TYPE_CHECKING:
    import httpx

    from bento.response import FailureError, Success


@runtime_checkable
class SuccessModelMapper[T, V](Protocol):
    """Maps a ``Success`` response to a model."""

    def map(self, response: Success[T]) -> V: ...  # noqa: D102


@runtime_checkable
class ErrorModelMapper[V](Protocol):
    """Maps a ``Failure.Error`` response to an error model."""

    def map(self, response: FailureError[Any]) -> V: ...  # noqa: D102


type SuccessMapperLike[T, V] = SuccessModelMapper[T, V] | Callable[[Success[T]], V]
type ErrorMapperLike[V] = ErrorModelMapper[V] | Callable[[FailureError[Any]], V]


class ModelSuccessMapper[V]:
    """Validate ``Success.data`` into *model* (any type pydantic understands)."""

    def __init__(self, model: type[V] | Any) -> None:
        self._adapter: TypeAdapter[V] = TypeAdapter(model)

    def map(self, response: Success[Any]) -> V:
        return self._adapter.validate_python(response.data)


class ModelErrorMapper[V]:
    """Validate the JSON ``error_body`` of a ``Failure.Error`` into *model*.

    A missing body is validated as JSON ``null``, so optional models map it
    to ``None`` and strict models raise ``pydantic.ValidationError``.
    """

    def __init__(self, model: type[V] | Any) -> None:
        self._adapter: TypeAdapter[V] = TypeAdapter(model)

    def map(self, response: FailureError[Any]) -> V:
        return self._adapter.validate_json(response.error_body or b"null")


def model_decoder[V](model: type[V] | Any) -> Callable[[httpx.Response], V]:
    """Return a ``classify`` decoder validating the JSON body into *model*.

    Validation errors surface as ``Failure.Exception``, like any other decode
    failure.
    """
    adapter: TypeAdapter[V] = TypeAdapter(model)

    def decode(response: httpx.Response) -> V:
        return adapter.validate_json(response.content or b"null")

    return decode
