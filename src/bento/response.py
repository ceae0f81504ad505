"""Typed outcomes of a completed HTTP attempt and their combinators.

An ``ApiResponse`` is exactly one of three variants:

- ``Success``: the server answered with a status in the success range.
- ``Failure.Error``: the server answered with any other status.
- ``Failure.Exception``: the attempt raised before a response was available.

The hierarchy is closed. Handling code inspects outcomes through the
combinators below (or a ``match`` statement) instead of ``None`` checks and
``try``/``except`` blocks:

    response = await ApiResponse.of_async(lambda: client.get("/posters"))
    (
        response.on_success(lambda r: render(r.data))
        .on_error(lambda r: log.warning("server said %s", r.status_code))
        .on_exception(lambda r: log.error("request failed: %s", r.message()))
    )
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
import dataclasses
from enum import Enum
import inspect
import logging
from typing import TYPE_CHECKING, Any, ClassVar, Never, Self, cast

from bento._http import MERGED_STATUS_CODE
from bento.errors import APIError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Iterator

    from bento.classify import Attempt, Decoder
    from bento.mappers import ErrorMapperLike, SuccessMapperLike
    from bento.operators import ApiResponseOperator, ApiResponseSuspendOperator

log = logging.getLogger(__name__)

# The only classes allowed to extend ApiResponse.
_VARIANTS = frozenset({"ApiResponse", "Success", "Failure", "FailureError", "FailureException"})


class MergePolicy(str, Enum):
    """How ``merge`` treats failing inputs."""

    #: Skip failures and merge every successful payload.
    IGNORE_FAILURE = "ignore_failure"
    #: Return the first failure instead of a merged success.
    PREFERRED_FAILURE = "preferred_failure"


async def _resolve[V](value: V | Awaitable[V]) -> V:
    if inspect.isawaitable(value):
        return await value
    return value


def _apply_mapper(mapper: Any, response: ApiResponse[Any]) -> Any:
    """Run a mapper object (``.map``) or a plain callable over *response*."""
    map_fn = getattr(mapper, "map", None)
    if callable(map_fn):
        return map_fn(response)
    return mapper(response)


def _unknown_variant(response: object) -> Never:
    raise TypeError(f"Unknown ApiResponse variant: {type(response).__name__}")


class ApiResponse[T]:
    """Closed union of ``Success``, ``Failure.Error`` and ``Failure.Exception``.

    Not instantiable directly; build outcomes with ``classify``,
    ``ApiResponse.of`` / ``of_async`` or the variant constructors.
    """

    __slots__ = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if cls.__module__ != __name__ or cls.__name__ not in _VARIANTS:
            raise TypeError(
                f"ApiResponse is a closed hierarchy; {cls.__qualname__} cannot extend it"
            )

    def __new__(cls, *args: Any, **kwargs: Any) -> Self:
        if cls is ApiResponse or cls is Failure:
            raise TypeError(f"{cls.__name__} is abstract; use one of its variants")
        return super().__new__(cls)

    # --- Constructors ---

    @classmethod
    def of(
        cls,
        factory: Callable[[], Attempt],
        *,
        decode: Decoder | None = None,
        success_codes: range | None = None,
    ) -> ApiResponse[Any]:
        """Run *factory* and classify what it returns or raises."""
        from bento.classify import classify_call

        return classify_call(factory, decode=decode, success_codes=success_codes)

    @classmethod
    async def of_async(
        cls,
        factory: Callable[[], Awaitable[Attempt]],
        *,
        decode: Decoder | None = None,
        success_codes: range | None = None,
    ) -> ApiResponse[Any]:
        """Await *factory* and classify the result; cancellation propagates."""
        from bento.classify import classify_call_async

        return await classify_call_async(
            factory, decode=decode, success_codes=success_codes
        )

    @staticmethod
    def from_exception(exc: BaseException) -> FailureException[Any]:
        """Wrap *exc* as a ``Failure.Exception`` outcome."""
        return FailureException(exc)

    # --- Matching ---

    def _matches(self, kind: type[ApiResponse[Any]]) -> bool:
        # Shared by the sync and async surfaces.
        return isinstance(self, kind)

    def _dispatch(
        self,
        kind: type[ApiResponse[Any]],
        action: Callable[[Any], Any],
        mapper: Any = None,
    ) -> None:
        if self._matches(kind):
            action(self if mapper is None else _apply_mapper(mapper, self))

    async def _dispatch_async(
        self,
        kind: type[ApiResponse[Any]],
        action: Callable[[Any], Any],
        mapper: Any = None,
    ) -> None:
        if self._matches(kind):
            target = self if mapper is None else await _resolve(_apply_mapper(mapper, self))
            await _resolve(action(target))

    # --- Inspection ---

    def on_success[V](
        self,
        action: Callable[[Any], Any],
        *,
        mapper: SuccessMapperLike[T, V] | None = None,
    ) -> Self:
        """Call *action* with this ``Success`` (or its mapped model).

        Returns:
            This response, unchanged, for chaining.
        """
        self._dispatch(Success, action, mapper)
        return self

    def on_error[V](
        self,
        action: Callable[[Any], Any],
        *,
        mapper: ErrorMapperLike[V] | None = None,
    ) -> Self:
        """Call *action* with this ``Failure.Error`` (or its mapped model).

        The mapper runs only when the response is an error, so error schemas
        are parsed lazily and only by the code that cares about them.
        """
        self._dispatch(FailureError, action, mapper)
        return self

    def on_exception(self, action: Callable[[FailureException[T]], Any]) -> Self:
        """Call *action* with this ``Failure.Exception``."""
        self._dispatch(FailureException, action)
        return self

    def on_failure(self, action: Callable[[Failure[T]], Any]) -> Self:
        """Call *action* with this response when it is either failure variant."""
        self._dispatch(Failure, action)
        return self

    def on_procedure(
        self,
        on_success: Callable[[Success[T]], Any],
        on_error: Callable[[FailureError[T]], Any],
        on_exception: Callable[[FailureException[T]], Any],
    ) -> Self:
        """Handle all three variants in one call.

        Each handler is offered in turn with no early return; since the
        variants are disjoint exactly one of them runs.
        """
        self.on_success(on_success)
        self.on_error(on_error)
        self.on_exception(on_exception)
        return self

    async def on_success_async[V](
        self,
        action: Callable[[Any], Any],
        *,
        mapper: SuccessMapperLike[T, V] | None = None,
    ) -> Self:
        """Async ``on_success``: *action* and *mapper* may be coroutine functions."""
        await self._dispatch_async(Success, action, mapper)
        return self

    async def on_error_async[V](
        self,
        action: Callable[[Any], Any],
        *,
        mapper: ErrorMapperLike[V] | None = None,
    ) -> Self:
        """Async ``on_error``."""
        await self._dispatch_async(FailureError, action, mapper)
        return self

    async def on_exception_async(self, action: Callable[[FailureException[T]], Any]) -> Self:
        """Async ``on_exception``."""
        await self._dispatch_async(FailureException, action)
        return self

    async def on_failure_async(self, action: Callable[[Failure[T]], Any]) -> Self:
        """Async ``on_failure``."""
        await self._dispatch_async(Failure, action)
        return self

    async def on_procedure_async(
        self,
        on_success: Callable[[Success[T]], Any],
        on_error: Callable[[FailureError[T]], Any],
        on_exception: Callable[[FailureException[T]], Any],
    ) -> Self:
        """Async ``on_procedure``; each handler is awaited in turn."""
        await self.on_success_async(on_success)
        await self.on_error_async(on_error)
        await self.on_exception_async(on_exception)
        return self

    # --- Values ---

    def get_or_none(self) -> T | None:
        """Return the payload, or ``None`` for either failure."""
        match self:
            case Success():
                return self.data
            case FailureError() | FailureException():
                return None
            case _:
                _unknown_variant(self)

    def get_or_else(self, default: T) -> T:
        """Return the payload, or *default* for either failure."""
        match self:
            case Success():
                return self.data
            case FailureError() | FailureException():
                return default
            case _:
                _unknown_variant(self)

    def get_or_else_get(self, supplier: Callable[[], T]) -> T:
        """Return the payload, or call *supplier* for either failure."""
        match self:
            case Success():
                return self.data
            case FailureError() | FailureException():
                return supplier()
            case _:
                _unknown_variant(self)

    def get_or_throw(self) -> T:
        """Return the payload or raise.

        Raises:
            APIError: For ``Failure.Error``; the message is ``message()``.
            BaseException: The captured exception itself for ``Failure.Exception``.
        """
        match self:
            case Success():
                return self.data
            case FailureError():
                raise APIError(
                    self.message(),
                    status_code=self.status_code,
                    error_body=self.error_body,
                    headers=self.headers,
                )
            case FailureException():
                raise self.exception
            case _:
                _unknown_variant(self)

    # --- Mapping ---

    def map_success[V](self, transform: Callable[[T], V]) -> ApiResponse[V]:
        """Transform the payload of a ``Success``, keeping status and headers.

        Failures carry no payload, so they are returned as-is and only their
        nominal payload type changes. The cast below is that type erasure
        point, not a conversion.
        """
        if isinstance(self, Success):
            return Success(
                transform(self.data), status_code=self.status_code, headers=self.headers
            )
        return cast("ApiResponse[V]", self)

    async def map_success_async[V](
        self, transform: Callable[[T], V | Awaitable[V]]
    ) -> ApiResponse[V]:
        """Async ``map_success``; awaits the transform when it is a coroutine."""
        if isinstance(self, Success):
            data = await _resolve(transform(self.data))
            return Success(data, status_code=self.status_code, headers=self.headers)
        return cast("ApiResponse[V]", self)

    # --- Aggregation ---

    def merge[E](
        self: ApiResponse[list[E]],
        *others: ApiResponse[list[E]],
        policy: MergePolicy = MergePolicy.IGNORE_FAILURE,
    ) -> ApiResponse[list[E]]:
        """Merge this list response with *others*; see ``bento.response.merge``."""
        return merge(self, *others, policy=policy)

    # --- Conversion ---

    def to_stream(self, transform: Callable[[T], Any] | None = None) -> Iterator[Any]:
        """Return a lazy iterator over the payload.

        Yields one item (the payload, or ``transform(payload)``) for a
        ``Success`` and nothing for a failure. The transform runs only when
        the iterator is advanced; every call returns a fresh iterator.
        """
        if isinstance(self, Success):
            return _single(self.data, transform)
        return iter(())

    async def to_stream_async(
        self, transform: Callable[[T], Any] | None = None
    ) -> AsyncIterator[Any]:
        """Async ``to_stream``; *transform* may be a coroutine function."""
        if isinstance(self, Success):
            if transform is None:
                yield self.data
            else:
                yield await _resolve(transform(self.data))

    # --- Operators ---

    def operator(self, op: ApiResponseOperator[T]) -> Self:
        """Dispatch to the method of *op* matching this variant."""
        match self:
            case Success():
                op.on_success(self)
            case FailureError():
                op.on_error(self)
            case FailureException():
                op.on_exception(self)
            case _:
                _unknown_variant(self)
        return self

    async def operator_async(self, op: ApiResponseSuspendOperator[T]) -> Self:
        """Await the method of *op* matching this variant."""
        match self:
            case Success():
                await op.on_success(self)
            case FailureError():
                await op.on_error(self)
            case FailureException():
                await op.on_exception(self)
            case _:
                _unknown_variant(self)
        return self


def _single(data: Any, transform: Callable[[Any], Any] | None) -> Iterator[Any]:
    yield data if transform is None else transform(data)


@dataclasses.dataclass(frozen=True, slots=True)
class Success[T](ApiResponse[T]):
    """The server answered with a status in the success range."""

    data: T
    status_code: int = 200
    headers: Mapping[str, str] = dataclasses.field(default_factory=dict)

    def map[V](
        self,
        mapper: SuccessMapperLike[T, V],
        on_result: Callable[[V], Any] | None = None,
    ) -> V:
        """Convert this response into a caller-defined model.

        Args:
            mapper: A ``SuccessModelMapper`` or a callable taking this response.
            on_result: Optional callback receiving the mapped model.

        Returns:
            The mapped model.
        """
        mapped = _apply_mapper(mapper, self)
        if on_result is not None:
            on_result(mapped)
        return mapped

    async def map_async[V](
        self,
        mapper: SuccessMapperLike[T, V | Awaitable[V]],
        on_result: Callable[[V], Any] | None = None,
    ) -> V:
        """Async ``map``: awaits an async mapper and/or async *on_result*."""
        mapped = await _resolve(_apply_mapper(mapper, self))
        if on_result is not None:
            await _resolve(on_result(mapped))
        return mapped


class Failure[T](ApiResponse[T], ABC):
    """Common parent of the two failure variants."""

    __slots__ = ()

    Error: ClassVar[type[FailureError[Any]]]
    Exception: ClassVar[type[FailureException[Any]]]

    @abstractmethod
    def message(self) -> str:
        """Return a human readable description of the failure."""

    def __str__(self) -> str:
        return self.message()


@dataclasses.dataclass(frozen=True, slots=True)
class FailureError[T](Failure[T]):
    """The server answered with a status outside the success range.

    The body is kept raw; decode it with an error mapper when needed.
    """

    status_code: int
    error_body: bytes | None = None
    headers: Mapping[str, str] = dataclasses.field(default_factory=dict)

    def message(self) -> str:
        """Return ``[Failure.Error-<status>](error_body=<body>)``."""
        body = (
            self.error_body.decode("utf-8", errors="replace")
            if self.error_body is not None
            else None
        )
        return f"[Failure.Error-{self.status_code}](error_body={body})"

    def map[V](
        self,
        mapper: ErrorMapperLike[V],
        on_result: Callable[[V], Any] | None = None,
    ) -> V:
        """Convert this error into a caller-defined error model."""
        mapped = _apply_mapper(mapper, self)
        if on_result is not None:
            on_result(mapped)
        return mapped

    async def map_async[V](
        self,
        mapper: ErrorMapperLike[V | Awaitable[V]],
        on_result: Callable[[V], Any] | None = None,
    ) -> V:
        """Async ``map`` for error models."""
        mapped = await _resolve(_apply_mapper(mapper, self))
        if on_result is not None:
            await _resolve(on_result(mapped))
        return mapped


@dataclasses.dataclass(frozen=True, slots=True)
class FailureException[T](Failure[T]):
    """The attempt raised before a response was available."""

    exception: BaseException

    def message(self) -> str:
        """Return ``[Failure.Exception](message=<str(exception)>)``."""
        return f"[Failure.Exception](message={self.exception})"


Failure.Error = FailureError
Failure.Exception = FailureException


def merge[E](
    primary: ApiResponse[list[E]],
    *others: ApiResponse[list[E]],
    policy: MergePolicy = MergePolicy.IGNORE_FAILURE,
) -> ApiResponse[list[E]]:
    """Merge list-bearing responses into one.

    Payloads of successful responses are concatenated in order (primary
    first) and the headers of the last merged success win. Under
    ``IGNORE_FAILURE`` failures are dropped and the result is always a
    ``Success``, possibly with an empty list. Under ``PREFERRED_FAILURE`` the
    first failure is returned and everything merged before it is discarded.
    """
    merged: Success[list[E]] = Success([], status_code=MERGED_STATUS_CODE, headers={})
    for response in (primary, *others):
        if isinstance(response, Success):
            merged = Success(
                [*merged.data, *response.data],
                status_code=MERGED_STATUS_CODE,
                headers=response.headers,
            )
        elif policy is MergePolicy.PREFERRED_FAILURE:
            log.debug("Merge short-circuited on %s", type(response).__name__)
            return response
    return merged
