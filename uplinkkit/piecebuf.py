"""A synchronized ring buffer holding the erasure shares of one piece."""

from __future__ import annotations

import contextlib
import threading

from uplinkkit.errors import EestreamError


class PieceBuffer:
    """Ring buffer shared by a producer writing piece bytes and a consumer reading shares.

    Whenever a new complete erasure share becomes available, or an error is
    set, ``new_data_cond`` is notified.
    """

    def __init__(
        self,
        buffer_size: int,
        share_size: int,
        new_data_cond: threading.Condition | None = None,
    ) -> None:
        if buffer_size <= 0:
            raise ValueError("buffer size must be positive")
        if share_size <= 0:
            raise ValueError("share size must be positive")
        self._buf = bytearray(buffer_size)
        self._share_size = share_size
        self._cond = threading.Condition(threading.Lock())
        self._new_data_cond = new_data_cond if new_data_cond is not None else threading.Condition()
        self._rpos = 0
        self._wpos = 0
        self._full = False
        self._current_share = 0
        self._total_written = 0
        self._last_notified = 0
        self._error: BaseException | None = None

    @property
    def current_share(self) -> int:
        """Number of the next erasure share to be read."""
        return self._current_share

    def _empty(self) -> bool:
        return not self._full and self._rpos == self._wpos

    def _wait_for_data(self) -> bool:
        """Block until data is buffered; return False at end of stream. Caller holds the lock."""
        while self._empty():
            if self._error is not None:
                if isinstance(self._error, EOFError):
                    return False
                raise self._error
            self._cond.wait()
        return True

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` buffered bytes, blocking while the buffer is empty.

        Returns ``b""`` once the buffer is drained and end of stream was set;
        any other error set on the buffer is raised once it is drained.
        """
        with self._cond:
            if not self._wait_for_data():
                return b""
            length = len(self._buf)
            if size is None or size < 0:
                size = length
            out = bytearray()
            if self._rpos >= self._wpos:
                take = min(size, length - self._rpos)
                out += self._buf[self._rpos:self._rpos + take]
                self._rpos = (self._rpos + take) % length
                size -= take
            if self._rpos < self._wpos:
                take = min(size, self._wpos - self._rpos)
                out += self._buf[self._rpos:self._rpos + take]
                self._rpos += take
            if out:
                self._full = False
            self._cond.notify_all()
            return bytes(out)

    def skip(self, n: int) -> None:
        """Advance the read position by ``n`` bytes, blocking until enough data is written."""
        with self._cond:
            try:
                length = len(self._buf)
                while n > 0:
                    while self._empty():
                        if self._error is not None:
                            raise self._error
                        self._cond.wait()
                    if self._rpos >= self._wpos:
                        if length - self._rpos > n:
                            self._rpos = (self._rpos + n) % length
                            n = 0
                        else:
                            n -= length - self._rpos
                            self._rpos = 0
                    elif self._wpos - self._rpos > n:
                        self._rpos += n
                        n = 0
                    else:
                        n -= self._wpos - self._rpos
                        self._rpos = self._wpos
                    self._full = False
            finally:
                self._cond.notify_all()

    def write(self, data: bytes) -> int:
        """Write all of ``data``, blocking while the buffer is full.

        Raises the error set on the buffer if it is full when one is set.
        """
        view = memoryview(bytes(data))
        written = 0
        while written < len(view):
            count = self._write_some(view[written:])
            written += count
            self._total_written += count
            if self._total_written // self._share_size - self._last_notified // self._share_size > 0:
                self._last_notified = self._total_written
                self._notify_new_data()
        return written

    def _write_some(self, data: memoryview) -> int:
        with self._cond:
            try:
                while self._full:
                    if self._error is not None:
                        raise self._error
                    self._cond.wait()
                if self._wpos < self._rpos:
                    space = self._rpos - self._wpos
                else:
                    space = len(self._buf) - self._wpos
                count = min(space, len(data))
                self._buf[self._wpos:self._wpos + count] = data[:count]
                self._wpos = (self._wpos + count) % len(self._buf)
                if self._wpos == self._rpos:
                    self._full = True
                return count
            finally:
                self._cond.notify_all()

    def close(self) -> None:
        """Stop further writes and blocking reads."""
        self.set_error(BrokenPipeError("read/write on closed pipe"))

    def set_error(self, error: BaseException) -> None:
        """Set the error raised by writes, and by reads once the buffer is drained."""
        with self._cond:
            self._error = error
            self._cond.notify_all()
        self._notify_new_data()

    def _get_error(self) -> BaseException | None:
        with self._cond:
            return self._error

    def _notify_new_data(self) -> None:
        with self._new_data_cond:
            self._new_data_cond.notify_all()

    def _buffered(self) -> int:
        with self._cond:
            if self._rpos < self._wpos:
                return self._wpos - self._rpos
            if self._rpos > self._wpos:
                return len(self._buf) + self._wpos - self._rpos
            if self._full:
                return len(self._buf)
            return 0

    def has_share(self, num: int) -> bool:
        """Tell whether share ``num`` can be read without blocking.

        Older shares are discarded to make room for newer ones. Returns True
        once an error has been set, since reading will then not block.
        """
        if num < self._current_share:
            raise EestreamError("requested erasure share was already read")
        if self._get_error() is not None:
            return True
        buffered_shares = self._buffered() // self._share_size
        ahead = num - self._current_share
        if ahead > 0:
            target = num if buffered_shares > ahead else self._current_share + buffered_shares
            with contextlib.suppress(Exception):
                self._discard_until(target)
            buffered_shares = self._buffered() // self._share_size
        return buffered_shares > num - self._current_share

    def read_share(self, num: int) -> bytes:
        """Read erasure share ``num``, discarding any earlier shares."""
        if num < self._current_share:
            raise EestreamError("requested erasure share was already read")
        self._discard_until(num)
        share = self._read_full(self._share_size)
        self._current_share += 1
        return share

    def _read_full(self, size: int) -> bytes:
        out = bytearray()
        while len(out) < size:
            chunk = self.read(size - len(out))
            if not chunk:
                raise EOFError("unexpected EOF" if out else "EOF")
            out += chunk
        return bytes(out)

    def _discard_until(self, num: int) -> None:
        if num <= self._current_share:
            return
        self.skip((num - self._current_share) * self._share_size)
        self._current_share = num