"""Fire-and-forget request helpers whose callbacks receive an ``ApiResponse``.

A ``Call`` is a zero-argument callable returning an awaitable transport
response, e.g. ``functools.partial(client.get, "/posters")``. ``enqueue``
runs it in the background and reports completion to a ``ResponseCallback``;
the callback factories below classify that completion before handing it to
the caller's ``on_result``:

- ``callback_from_on_result``: call ``on_result`` directly.
- ``callback_with_context``: dispatch ``on_result`` onto an event loop under
  a supervisor, so one failing dispatch does not affect the others.
- ``callback_in_scope``: dispatch ``on_result`` as a child task of an
  ``asyncio.TaskGroup``; cancelling the group cancels pending dispatches.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import asyncio
from dataclasses import dataclass
import inspect
import logging
import threading
from typing import TYPE_CHECKING, Any, Protocol

from bento.classify import classify, classify_returned

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Coroutine
    import concurrent.futures

    from bento.classify import Attempt, Decoder
    from bento.response import ApiResponse

    type Call = Callable[[], Awaitable[Attempt]]
    type OnResult = Callable[[ApiResponse[Any]], Any]
    type Spawn = Callable[[Coroutine[Any, Any, None]], asyncio.Task[None]]

log = logging.getLogger(__name__)

# Strong references to in-flight tasks so they are not garbage collected.
_BACKGROUND_TASKS: set[asyncio.Task[Any]] = set()


class ResponseCallback(Protocol):
    """Receives the completion of an enqueued call."""

    def on_response(self, response: Attempt) -> None:
        """The call returned a transport response."""
        ...

    def on_failure(self, exc: BaseException) -> None:
        """The call raised before a response was available."""
        ...


def enqueue(
    call: Call, callback: ResponseCallback, *, spawn: Spawn | None = None
) -> asyncio.Task[None]:
    """Run *call* in the background and report its completion to *callback*.

    Args:
        call: Zero-argument callable returning an awaitable response.
        callback: Receives ``on_response`` or ``on_failure`` exactly once.
        spawn: Task factory; defaults to the running loop's ``create_task``.

    Returns:
        The background task. Cancelling it cancels the request; the callback
        is then never invoked.
    """

    async def _run() -> None:
        try:
            response = await call()
        except Exception as exc:
            callback.on_failure(exc)
            return
        callback.on_response(response)

    if spawn is None:
        task = asyncio.get_running_loop().create_task(_run(), name="bento.enqueue")
        _BACKGROUND_TASKS.add(task)
        task.add_done_callback(_BACKGROUND_TASKS.discard)
        return task
    return spawn(_run())


@dataclass(frozen=True)
class _ClassifyingCallback(ABC):
    decode: Decoder | None
    success_codes: range | None

    def on_response(self, response: Attempt) -> None:
        self.deliver(
            classify_returned(
                response, decode=self.decode, success_codes=self.success_codes
            )
        )

    def on_failure(self, exc: BaseException) -> None:
        self.deliver(classify(exc))

    @abstractmethod
    def deliver(self, outcome: ApiResponse[Any]) -> None:
        """Hand the classified outcome to the caller."""


@dataclass(frozen=True)
class OnResultCallback(_ClassifyingCallback):
    """Calls ``on_result`` synchronously with the classified outcome."""

    on_result: OnResult

    def deliver(self, outcome: ApiResponse[Any]) -> None:
        self.on_result(outcome)


class SupervisedCallback:
    """Dispatches ``on_result`` onto an event loop as independent units of work.

    ``on_result`` may be a plain or a coroutine function. Each dispatch runs
    on *loop* (thread-safe, so the loop may live in another thread); an
    exception raised by one dispatch is logged and never cancels its
    siblings. ``cancel()`` cancels pending dispatches and drops later ones.
    """

    def __init__(
        self,
        on_result: OnResult,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        decode: Decoder | None = None,
        success_codes: range | None = None,
    ) -> None:
        self._on_result = on_result
        self._loop = loop
        self._decode = decode
        self._success_codes = success_codes
        # Touched from the caller's thread and from the loop's thread.
        self._lock = threading.Lock()
        self._pending: set[concurrent.futures.Future[None]] = set()
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        """Whether ``cancel()`` was called."""
        return self._cancelled

    @property
    def pending(self) -> int:
        """Number of dispatches not finished yet."""
        with self._lock:
            return len(self._pending)

    def on_response(self, response: Attempt) -> None:
        self._launch(
            classify_returned(
                response,
                decode=self._decode,
                success_codes=self._success_codes,
            )
        )

    def on_failure(self, exc: BaseException) -> None:
        self._launch(classify(exc))

    def cancel(self) -> None:
        """Cancel pending dispatches; later completions are dropped."""
        with self._lock:
            self._cancelled = True
            pending = list(self._pending)
        # Outside the lock: cancelling runs _settle synchronously.
        for fut in pending:
            fut.cancel()

    async def wait(self) -> None:
        """Wait until every pending dispatch has finished."""
        while pending := self._snapshot():
            await asyncio.gather(
                *(asyncio.wrap_future(fut) for fut in pending),
                return_exceptions=True,
            )

    def _snapshot(self) -> list[concurrent.futures.Future[None]]:
        with self._lock:
            return list(self._pending)

    def _launch(self, outcome: ApiResponse[Any]) -> None:
        loop = self._loop or asyncio.get_running_loop()
        with self._lock:
            if self._cancelled:
                log.debug("Supervisor cancelled; dropping %s", type(outcome).__name__)
                return
            fut = asyncio.run_coroutine_threadsafe(self._deliver(outcome), loop)
            self._pending.add(fut)
        fut.add_done_callback(self._settle)

    async def _deliver(self, outcome: ApiResponse[Any]) -> None:
        result = self._on_result(outcome)
        if inspect.isawaitable(result):
            await result

    def _settle(self, fut: concurrent.futures.Future[None]) -> None:
        with self._lock:
            self._pending.discard(fut)
        if fut.cancelled():
            return
        exc = fut.exception()
        if exc is not None:
            log.warning("Result callback failed: %s", exc, exc_info=exc)


@dataclass(frozen=True)
class ScopedCallback(_ClassifyingCallback):
    """Dispatches ``on_result`` as a child task of a ``TaskGroup``.

    Once the group is shutting down (cancelled or failed) new dispatches are
    dropped, so a result arriving after cancellation is never delivered.
    """

    scope: asyncio.TaskGroup
    on_result: OnResult

    def deliver(self, outcome: ApiResponse[Any]) -> None:
        coro = self._deliver(outcome)
        try:
            self.scope.create_task(coro, name="bento.deliver")
        except RuntimeError as exc:
            # Raised by TaskGroup.create_task once the group is finished or aborting.
            coro.close()
            log.debug("Scope closed; dropping %s: %s", type(outcome).__name__, exc)

    async def _deliver(self, outcome: ApiResponse[Any]) -> None:
        result = self.on_result(outcome)
        if inspect.isawaitable(result):
            await result


def callback_from_on_result(
    on_result: OnResult,
    *,
    decode: Decoder | None = None,
    success_codes: range | None = None,
) -> OnResultCallback:
    """Return a callback calling *on_result* directly."""
    return OnResultCallback(decode, success_codes, on_result)


def callback_with_context(
    on_result: OnResult,
    *,
    loop: asyncio.AbstractEventLoop | None = None,
    decode: Decoder | None = None,
    success_codes: range | None = None,
) -> SupervisedCallback:
    """Return a callback dispatching *on_result* onto *loop* under a supervisor.

    Without *loop*, dispatches go to the loop running when the call completes.
    """
    return SupervisedCallback(
        on_result, loop=loop, decode=decode, success_codes=success_codes
    )


def callback_in_scope(
    scope: asyncio.TaskGroup,
    on_result: OnResult,
    *,
    decode: Decoder | None = None,
    success_codes: range | None = None,
) -> ScopedCallback:
    """Return a callback dispatching *on_result* as a child task of *scope*."""
    return ScopedCallback(decode, success_codes, scope, on_result)


def request(
    call: Call,
    on_result: OnResult,
    *,
    decode: Decoder | None = None,
    success_codes: range | None = None,
) -> asyncio.Task[None]:
    """Run *call* in the background and pass the classified outcome to *on_result*.

    Example:
        request(partial(client.get, "/posters"), lambda r: r.on_success(show))
    """
    callback = callback_from_on_result(
        on_result, decode=decode, success_codes=success_codes
    )
    return enqueue(call, callback)


def request_with_context(
    call: Call,
    on_result: OnResult,
    *,
    loop: asyncio.AbstractEventLoop | None = None,
    decode: Decoder | None = None,
    success_codes: range | None = None,
) -> asyncio.Task[None]:
    """Run *call* and dispatch the classified outcome onto *loop*.

    Returns:
        The background request task. To cancel or await the delivery itself,
        build the callback with ``callback_with_context`` and ``enqueue`` it.
    """
    callback = callback_with_context(
        on_result, loop=loop, decode=decode, success_codes=success_codes
    )
    return enqueue(call, callback)


def request_in_scope(
    call: Call,
    scope: asyncio.TaskGroup,
    on_result: OnResult,
    *,
    decode: Decoder | None = None,
    success_codes: range | None = None,
) -> asyncio.Task[None]:
    """Run *call* and deliver its outcome, both as child tasks of *scope*.

    Cancelling the group cancels the in-flight request and any pending
    delivery.
    """
    callback = callback_in_scope(
        scope, on_result, decode=decode, success_codes=success_codes
    )
    return enqueue(call, callback, spawn=scope.create_task)
