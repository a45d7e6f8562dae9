import errno
import threading
from unittest import mock

import pytest

from uplinkkit.retry import CancelledError, ExponentialBackoff, needs_retry, with_retry


def test_with_retry_success_runs_once():
    calls = []

    def fn():
        calls.append(1)
        return "ok"

    assert with_retry(fn) == "ok"
    assert len(calls) == 1


@mock.patch("time.sleep")
def test_with_retry_connection_reset_retries_then_raises(sleep):
    calls = []

    def fn():
        calls.append(1)
        raise ConnectionResetError(errno.ECONNRESET, "connection reset by peer")

    with pytest.raises(ConnectionResetError) as info:
        with_retry(fn)
    assert info.value.errno == errno.ECONNRESET
    assert len(calls) > 1
    assert sleep.call_args_list[0] == mock.call(0.1)
    assert sleep.call_args_list[-1] == mock.call(3.0)


def test_with_retry_cancelled_before_first_attempt():
    calls = []
    cancel = threading.Event()
    cancel.set()

    def fn():
        calls.append(1)

    with pytest.raises(CancelledError):
        with_retry(fn, cancel)
    assert calls == []


@mock.patch("time.sleep")
def test_with_retry_non_retriable_error_raised_immediately(sleep):
    calls = []

    def fn():
        calls.append(1)
        raise ValueError("bad request")

    with pytest.raises(ValueError):
        with_retry(fn)
    assert len(calls) == 1
    assert sleep.call_count == 0


@mock.patch("time.sleep")
def test_with_retry_recovers_after_transient_failure(sleep):
    outcomes = [ConnectionRefusedError("refused"), "done"]

    def fn():
        outcome = outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    assert with_retry(fn) == "done"
    assert sleep.call_count == 1


@pytest.mark.parametrize(
    "error, expected",
    [
        (EOFError("EOF"), False),
        (ConnectionResetError("reset"), True),
        (ConnectionRefusedError("refused"), True),
        (TimeoutError("timed out"), True),
        (ValueError("nope"), False),
    ],
)
def test_needs_retry(error, expected):
    assert needs_retry(error) is expected


def test_needs_retry_follows_cause_chain():
    try:
        try:
            raise ConnectionResetError("reset")
        except ConnectionResetError as inner:
            raise RuntimeError("wrapped") from inner
    except RuntimeError as outer:
        assert needs_retry(outer) is True


def test_needs_retry_eof_in_chain_wins():
    outer = ConnectionResetError("reset")
    outer.__cause__ = EOFError("EOF")
    assert needs_retry(outer) is False


@mock.patch("time.sleep")
def test_backoff_defaults_and_doubling(sleep):
    backoff = ExponentialBackoff()
    assert backoff.maxed() is False
    backoff.wait()
    assert sleep.call_args == mock.call(0.005)
    backoff.wait()
    assert backoff.delay == pytest.approx(0.01)
    while not backoff.maxed():
        backoff.wait()
    assert backoff.delay == 1.0
    backoff.wait()
    assert backoff.delay == 1.0