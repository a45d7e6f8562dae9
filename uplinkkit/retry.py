"""Retrying of calls that fail with transient network errors."""

from __future__ import annotations

import socket
import threading
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import TypeVar

T = TypeVar("T")


class CancelledError(Exception):
    """Raised when an operation is cancelled before it runs."""

    def __init__(self, message: str = "context canceled") -> None:
        super().__init__(message)


@dataclass
class ExponentialBackoff:
    """Tracks an exponentially growing sleep between failing attempts, in seconds."""

    minimum: float = 0.0
    maximum: float = 0.0
    delay: float = field(default=0.0, init=False)

    def _init(self) -> None:
        if self.maximum == 0:
            self.maximum = 1.0
        if self.minimum == 0:
            self.minimum = 0.005

    def wait(self) -> None:
        """Sleep for the next delay, doubling it each time up to the maximum."""
        self._init()
        self.delay = self.minimum if self.delay == 0 else self.delay * 2
        if self.delay > self.maximum:
            self.delay = self.maximum
        time.sleep(self.delay)

    def maxed(self) -> bool:
        """Tell whether the delay has reached its maximum."""
        self._init()
        return self.delay == self.maximum


def _chain(error: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


_NETWORK_ERRORS = (ConnectionError, TimeoutError, socket.gaierror, socket.herror)


def needs_retry(error: BaseException) -> bool:
    """Tell whether ``error`` is a transient network failure worth retrying."""
    errors = list(_chain(error))
    # An EOF leaves it unclear whether the request succeeded, so it is not retried.
    if any(isinstance(e, EOFError) for e in errors):
        return False
    if any(isinstance(e, (ConnectionResetError, ConnectionRefusedError)) for e in errors):
        return True
    return any(isinstance(e, _NETWORK_ERRORS) for e in errors)


def with_retry(fn: Callable[[], T], cancel: threading.Event | None = None) -> T:
    """Call ``fn`` until it succeeds, retrying transient errors with exponential backoff.

    Once the backoff delay has maxed out, the last error is raised. If
    ``cancel`` is set before an attempt, ``CancelledError`` is raised.
    """
    backoff = ExponentialBackoff(minimum=0.1, maximum=3.0)
    while True:
        if cancel is not None and cancel.is_set():
            raise CancelledError()
        try:
            return fn()
        except Exception as exc:
            if needs_retry(exc) and not backoff.maxed():
                backoff.wait()
                continue
            raise