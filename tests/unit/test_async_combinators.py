"""Async combinators: coroutine handlers, mappers and operators."""

from __future__ import annotations

import pytest

from bento import Success
from tests.helpers import RecordingSuspendOperator

pytestmark = [pytest.mark.unit, pytest.mark.asyncio]


async def test_on_success_async_awaits_coroutine_action(success, error):
    seen: list[object] = []

    async def _action(response: object) -> None:
        seen.append(response)

    assert await success.on_success_async(_action) is success
    assert await error.on_success_async(_action) is error
    assert seen == [success]


async def test_async_combinators_accept_plain_callables(error):
    seen: list[object] = []
    await error.on_error_async(seen.append)
    assert seen == [error]


async def test_on_error_async_with_async_mapper(error):
    seen: list[int] = []

    async def _mapper(response) -> int:
        return response.status_code

    await error.on_error_async(seen.append, mapper=_mapper)
    assert seen == [404]


async def test_on_exception_and_failure_async(success, error, exception_outcome):
    exceptions: list[object] = []
    failures: list[object] = []
    for outcome in (success, error, exception_outcome):
        await outcome.on_exception_async(exceptions.append)
        await outcome.on_failure_async(failures.append)

    assert exceptions == [exception_outcome]
    assert failures == [error, exception_outcome]


@pytest.mark.parametrize(
    ("fixture_name", "expected"),
    [("success", "success"), ("error", "error"), ("exception_outcome", "exception")],
)
async def test_on_procedure_async_runs_exactly_one(request, fixture_name, expected):
    outcome = request.getfixturevalue(fixture_name)
    fired: list[str] = []

    def _handler(name: str):
        async def _run(_: object) -> None:
            fired.append(name)

        return _run

    await outcome.on_procedure_async(
        _handler("success"), _handler("error"), _handler("exception")
    )
    assert fired == [expected]


async def test_map_success_async(success, error):
    async def _upper(value: str) -> str:
        return value.upper()

    assert await success.map_success_async(_upper) == Success(
        "FOO", status_code=200, headers={"x-page": "1"}
    )
    assert await error.map_success_async(_upper) is error


async def test_map_async_with_async_on_result(success):
    seen: list[int] = []

    async def _mapper(response) -> int:
        return len(response.data)

    async def _on_result(value: int) -> None:
        seen.append(value)

    assert await success.map_async(_mapper, _on_result) == 3
    assert seen == [3]


async def test_error_map_async(error):
    assert await error.map_async(lambda r: r.error_body) == b"foo"


async def test_to_stream_async(success, error):
    async def _double(value: str) -> str:
        return value * 2

    assert [item async for item in success.to_stream_async(_double)] == ["foofoo"]
    assert [item async for item in success.to_stream_async()] == ["foo"]
    assert [item async for item in error.to_stream_async(_double)] == []


@pytest.mark.parametrize(
    ("fixture_name", "expected"),
    [("success", "success"), ("error", "error"), ("exception_outcome", "exception")],
)
async def test_operator_async(request, fixture_name, expected):
    outcome = request.getfixturevalue(fixture_name)
    op = RecordingSuspendOperator()

    assert await outcome.operator_async(op) is outcome
    assert op.calls == [(expected, outcome)]
