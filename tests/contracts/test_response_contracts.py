"""Contract tests: properties every ApiResponse outcome must satisfy."""

from __future__ import annotations

from typing import Any

from hypothesis import given, settings
from hypothesis import strategies as st
import pytest

from bento import (
    ApiResponse,
    FailureError,
    FailureException,
    MergePolicy,
    RawResponse,
    Success,
    classify,
    merge,
)
from tests.helpers import procedure_recorders

pytestmark = pytest.mark.contract

_headers = st.dictionaries(
    st.sampled_from(["x-page", "etag", "content-type"]), st.text(max_size=8), max_size=2
)

successes = st.builds(
    Success,
    st.lists(st.integers(), max_size=4),
    status_code=st.integers(200, 299),
    headers=_headers,
)
errors = st.builds(
    FailureError,
    st.integers(300, 599),
    error_body=st.one_of(st.none(), st.binary(max_size=16)),
    headers=_headers,
)
exceptions = st.builds(
    FailureException,
    st.sampled_from([ValueError("bad"), TimeoutError("slow"), OSError("down")]),
)
outcomes = st.one_of(successes, errors, exceptions)


@given(outcome=outcomes)
@settings(max_examples=50, deadline=None, derandomize=True)
def test_on_procedure_runs_exactly_one_handler(outcome: ApiResponse[Any]) -> None:
    """Property: exactly one handler fires, receiving the outcome itself."""
    recorders = procedure_recorders()
    outcome.on_procedure(*recorders)

    fired = [r for r in recorders if r.seen]
    assert len(fired) == 1
    assert fired[0].seen == [outcome]


@given(outcome=outcomes)
@settings(max_examples=50, deadline=None, derandomize=True)
def test_value_accessors_agree(outcome: ApiResponse[Any]) -> None:
    """Property: get_or_none, get_or_else and to_stream describe the same payload."""
    sentinel = object()
    value = outcome.get_or_none()

    if isinstance(outcome, Success):
        assert value is outcome.data
        assert outcome.get_or_else(sentinel) is outcome.data
        assert list(outcome.to_stream()) == [outcome.data]
    else:
        assert value is None
        assert outcome.get_or_else(sentinel) is sentinel
        assert list(outcome.to_stream()) == []


@given(outcome=outcomes)
@settings(max_examples=50, deadline=None, derandomize=True)
def test_inspection_is_idempotent(outcome: ApiResponse[Any]) -> None:
    """Property: inspecting twice makes the same dispatch decision both times."""
    snapshot = repr(outcome)
    recorders = procedure_recorders()

    first = outcome.on_procedure(*recorders)
    fired_once = [r.name for r in recorders if r.seen]
    second = first.on_procedure(*recorders)
    fired_twice = [r.name for r in recorders if r.seen]

    assert first is outcome
    assert second is outcome
    assert len(fired_once) == 1
    assert fired_twice == fired_once
    assert next(r for r in recorders if r.seen).seen == [outcome, outcome]
    assert repr(outcome) == snapshot


@given(outcome=outcomes)
@settings(max_examples=50, deadline=None, derandomize=True)
def test_map_success_identity_preserves_outcome(outcome: ApiResponse[Any]) -> None:
    """Property: mapping with the identity yields an equal outcome."""
    assert outcome.map_success(lambda v: v) == outcome


@given(items=st.lists(outcomes, min_size=1, max_size=5))
@settings(max_examples=50, deadline=None, derandomize=True)
def test_merge_ignoring_failures_concatenates_successes(
    items: list[ApiResponse[Any]],
) -> None:
    """Property: IGNORE_FAILURE concatenates every success payload in order."""
    merged = merge(*items, policy=MergePolicy.IGNORE_FAILURE)

    successes_in = [r for r in items if isinstance(r, Success)]
    assert isinstance(merged, Success)
    assert merged.status_code == 200
    assert merged.data == [x for r in successes_in for x in r.data]
    assert merged.headers == (successes_in[-1].headers if successes_in else {})


@given(items=st.lists(outcomes, min_size=1, max_size=5))
@settings(max_examples=50, deadline=None, derandomize=True)
def test_merge_preferring_failure_returns_first_failure(
    items: list[ApiResponse[Any]],
) -> None:
    """Property: PREFERRED_FAILURE returns the first failure, if any."""
    merged = merge(*items, policy=MergePolicy.PREFERRED_FAILURE)

    failures = [r for r in items if not isinstance(r, Success)]
    if failures:
        assert merged is failures[0]
    else:
        assert merged == merge(*items, policy=MergePolicy.IGNORE_FAILURE)


@given(status=st.integers(100, 599), lo=st.integers(100, 599), size=st.integers(1, 200))
@settings(max_examples=100, deadline=None, derandomize=True)
def test_classify_partitions_by_success_range(status: int, lo: int, size: int) -> None:
    """Property: a status is Success exactly when it lies in the success range."""
    codes = range(lo, min(lo + size, 600))

    outcome = classify(RawResponse(status, body="ok"), success_codes=codes)

    assert isinstance(outcome, Success) == (status in codes)
    assert isinstance(outcome, FailureError) == (status not in codes)
