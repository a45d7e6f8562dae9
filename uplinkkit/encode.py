"""Erasure encoding of a byte stream into one readable stream per piece."""

from __future__ import annotations

import threading
from typing import BinaryIO

from uplinkkit.errors import EestreamError
from uplinkkit.ranger import LimitedReader, Ranger, calc_encompassing_blocks
from uplinkkit.scheme import RedundancyStrategy

_SOURCE_CHUNK = 64 * 1024


class _Tee:
    """Shares one source stream between several independent readers.

    Data is pulled from the source on demand and kept only until every open
    reader has moved past it.
    """

    def __init__(self, source: BinaryIO, reader_count: int) -> None:
        self._source = source
        self._lock = threading.Lock()
        self._buffer = bytearray()
        self._base = 0
        self._positions = {index: 0 for index in range(reader_count)}
        self._eof = False
        self._error: BaseException | None = None

    def _fill(self, end: int) -> None:
        while self._base + len(self._buffer) < end and not self._eof and self._error is None:
            want = max(end - self._base - len(self._buffer), _SOURCE_CHUNK)
            try:
                chunk = self._source.read(want)
            except Exception as exc:  # the source's failure is reported to every reader
                self._error = exc
                return
            if not chunk:
                self._eof = True
                return
            self._buffer += chunk

    def _trim(self) -> None:
        if not self._positions:
            self._base += len(self._buffer)
            self._buffer.clear()
            return
        lowest = min(self._positions.values())
        drop = lowest - self._base
        if drop > 0:
            del self._buffer[:drop]
            self._base = lowest

    def read_full(self, index: int, size: int) -> bytes:
        """Return exactly ``size`` bytes for reader ``index``, or ``b""`` at a clean end."""
        with self._lock:
            position = self._positions[index]
            self._fill(position + size)
            start = position - self._base
            data = bytes(self._buffer[start:start + size])
            if len(data) < size:
                if self._error is not None:
                    raise self._error
                if data:
                    raise EOFError("unexpected EOF")
                return b""
            self._positions[index] = position + size
            self._trim()
            return data

    def close(self, index: int) -> None:
        with self._lock:
            self._positions.pop(index, None)
            self._trim()


class EncodedPiece:
    """A readable stream of the erasure shares for one piece number."""

    def __init__(self, tee: _Tee, strategy: RedundancyStrategy, number: int) -> None:
        self._tee = tee
        self._strategy = strategy
        self.number = number
        self.current_stripe = 0
        self._share = b""
        self._offset = 0
        self._closed = False

    def _read_chunk(self, limit: int | None) -> bytes:
        if self._offset >= len(self._share):
            stripe = self._tee.read_full(self.number, self._strategy.stripe_size)
            if not stripe:
                return b""
            self._share = self._strategy.encode_single(stripe, self.number)
            self._offset = 0
            self.current_stripe += 1
        end = len(self._share) if limit is None else min(len(self._share), self._offset + limit)
        chunk = self._share[self._offset:end]
        self._offset = end
        return chunk

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes of this piece; read everything left if ``size`` is negative."""
        if self._closed:
            raise BrokenPipeError("read/write on closed pipe")
        if size == 0:
            return b""
        if size is None or size < 0:
            chunks = []
            while chunk := self._read_chunk(None):
                chunks.append(chunk)
            return b"".join(chunks)
        return self._read_chunk(size)

    def close(self) -> None:
        """Stop reading this piece and release the data it was holding back."""
        if not self._closed:
            self._closed = True
            self._tee.close(self.number)

    def __enter__(self) -> EncodedPiece:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def encode_reader(reader: BinaryIO, strategy: RedundancyStrategy) -> list[EncodedPiece]:
    """Split ``reader`` into one erasure-coded piece stream per share number."""
    tee = _Tee(reader, strategy.total_count)
    return [EncodedPiece(tee, strategy, number) for number in range(strategy.total_count)]


def _discard(reader: EncodedPiece, count: int) -> None:
    while count > 0:
        chunk = reader.read(count)
        if not chunk:
            raise EestreamError("EOF")
        count -= len(chunk)


class EncodedRanger:
    """Gives ranged access to the erasure-coded pieces of a ranger's content."""

    def __init__(self, ranger: Ranger, strategy: RedundancyStrategy) -> None:
        if ranger.size() % strategy.stripe_size != 0:
            raise EestreamError(
                "invalid erasure encoder and range reader combo. "
                "range reader size must be a multiple of erasure encoder block size"
            )
        self.ranger = ranger
        self.strategy = strategy

    def output_size(self) -> int:
        """Size of each encoded piece."""
        blocks = self.ranger.size() // self.strategy.stripe_size
        return blocks * self.strategy.erasure_share_size

    def range(self, offset: int, length: int) -> list[LimitedReader]:
        """Return one reader per piece covering ``length`` bytes from ``offset`` of each piece."""
        share_size = self.strategy.erasure_share_size
        stripe_size = self.strategy.stripe_size
        first_block, block_count = calc_encompassing_blocks(offset, length, share_size)
        source = self.ranger.range(first_block * stripe_size, block_count * stripe_size)
        pieces = encode_reader(source, self.strategy)
        skip = offset - first_block * share_size
        for piece in pieces:
            try:
                _discard(piece, skip)
            except EestreamError:
                raise
            except Exception as exc:
                raise EestreamError(str(exc) or type(exc).__name__) from exc
        return [LimitedReader(piece, length) for piece in pieces]