"""Erasure decoding of piece streams back into the original byte stream."""

from __future__ import annotations

from collections.abc import Mapping
from typing import BinaryIO

from uplinkkit.errors import EestreamError
from uplinkkit.ranger import ByteRanger, LimitedReader, Ranger, calc_encompassing_blocks
from uplinkkit.scheme import ErasureScheme
from uplinkkit.stripe import StripeReader


def _check_max_buffer_memory(max_buffer_memory: int) -> None:
    if max_buffer_memory < 0:
        raise EestreamError("negative max buffer memory")


def _describe(error: BaseException) -> str:
    return str(error) or type(error).__name__


class _FailingReader:
    """A piece stream that fails every read with a fixed error."""

    def __init__(self, error: BaseException) -> None:
        self._error = error

    def read(self, size: int = -1) -> bytes:
        raise self._error

    def close(self) -> None:
        pass


class DecodedReader:
    """Reads stripes decoded from a set of erasure piece streams."""

    def __init__(
        self,
        readers: Mapping[int, BinaryIO],
        scheme: ErasureScheme,
        expected_size: int,
        max_buffer_memory: int = 0,
        force_error_detection: bool = False,
    ) -> None:
        if expected_size < 0:
            raise EestreamError("negative expected size")
        if expected_size % scheme.stripe_size != 0:
            raise EestreamError(
                f"expected size ({expected_size}) not a factor decoded block size "
                f"({scheme.stripe_size})"
            )
        _check_max_buffer_memory(max_buffer_memory)
        self._readers = dict(readers)
        self._scheme = scheme
        self._stripe_reader = StripeReader(
            self._readers, scheme, max_buffer_memory, force_error_detection
        )
        self._expected_stripes = expected_size // scheme.stripe_size
        self._current_stripe = 0
        self._outbuf = b""
        self._offset = 0
        self._error: BaseException | None = None
        self._at_end = False
        self._closed = False

    def _next_chunk(self, limit: int | None) -> bytes:
        if self._offset >= len(self._outbuf):
            if self._error is not None:
                raise self._error
            if self._at_end:
                return b""
            if self._current_stripe >= self._expected_stripes:
                self._at_end = True
                return b""
            try:
                self._outbuf = self._stripe_reader.read_stripe(self._current_stripe)
            except Exception as exc:
                self._error = exc
                raise
            self._offset = 0
            self._current_stripe += 1
        end = len(self._outbuf) if limit is None else min(len(self._outbuf), self._offset + limit)
        chunk = self._outbuf[self._offset:end]
        self._offset = end
        return chunk

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` decoded bytes; read everything left if ``size`` is negative."""
        if size == 0:
            return b""
        if size is None or size < 0:
            chunks = []
            while chunk := self._next_chunk(None):
                chunks.append(chunk)
            return b"".join(chunks)
        return self._next_chunk(size)

    def close(self) -> None:
        """Close all piece streams.

        Failures are raised only when more pieces failed to close than the
        scheme can spare.
        """
        if self._closed:
            return
        self._closed = True
        errors: list[BaseException] = []
        for reader in self._readers.values():
            close = getattr(reader, "close", None)
            if close is None:
                continue
            try:
                close()
            except Exception as exc:
                errors.append(exc)
        try:
            self._stripe_reader.close()
        except Exception as exc:
            errors.append(exc)
        threshold = len(self._readers) - self._scheme.required_count - len(errors)
        if threshold < 0 and errors:
            if len(errors) == 1:
                raise errors[0]
            raise EestreamError("; ".join(_describe(error) for error in errors))

    def __enter__(self) -> DecodedReader:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def decode_readers(
    readers: Mapping[int, BinaryIO],
    scheme: ErasureScheme,
    expected_size: int,
    max_buffer_memory: int = 0,
    force_error_detection: bool = False,
) -> DecodedReader:
    """Combine piece streams keyed by piece number into one decoded stream.

    ``expected_size`` is the number of bytes the stream yields. When
    ``force_error_detection`` is set, one share more than required is always
    needed so that corrupted pieces can be detected.
    """
    return DecodedReader(readers, scheme, expected_size, max_buffer_memory, force_error_detection)


class DecodedRanger(Ranger):
    """A ranger over the data decoded from a set of piece rangers."""

    def __init__(
        self,
        rangers: Mapping[int, Ranger],
        scheme: ErasureScheme,
        piece_size: int,
        max_buffer_memory: int = 0,
        force_error_detection: bool = False,
    ) -> None:
        self._rangers = dict(rangers)
        self._scheme = scheme
        self._piece_size = piece_size
        self._max_buffer_memory = max_buffer_memory
        self._force_error_detection = force_error_detection

    def size(self) -> int:
        blocks = self._piece_size // self._scheme.erasure_share_size
        return blocks * self._scheme.stripe_size

    def range(self, offset: int, length: int) -> LimitedReader:
        stripe_size = self._scheme.stripe_size
        share_size = self._scheme.erasure_share_size
        first_block, block_count = calc_encompassing_blocks(offset, length, stripe_size)
        readers: dict[int, BinaryIO] = {}
        for num, ranger in self._rangers.items():
            try:
                readers[num] = ranger.range(first_block * share_size, block_count * share_size)
            except Exception as exc:
                readers[num] = _FailingReader(exc)
        decoded = decode_readers(
            readers,
            self._scheme,
            block_count * stripe_size,
            self._max_buffer_memory,
            self._force_error_detection,
        )
        remaining = offset - first_block * stripe_size
        try:
            while remaining > 0:
                chunk = decoded.read(remaining)
                if not chunk:
                    raise EestreamError("EOF")
                remaining -= len(chunk)
        except EestreamError:
            decoded.close()
            raise
        except Exception as exc:
            decoded.close()
            raise EestreamError(_describe(exc)) from exc
        return LimitedReader(decoded, length)


def decode(
    rangers: Mapping[int, Ranger],
    scheme: ErasureScheme,
    max_buffer_memory: int = 0,
    force_error_detection: bool = False,
) -> Ranger:
    """Combine piece rangers keyed by piece number into one decoded ranger."""
    _check_max_buffer_memory(max_buffer_memory)
    if len(rangers) < scheme.required_count:
        raise EestreamError("not enough readers to reconstruct data!")
    sizes = {ranger.size() for ranger in rangers.values()}
    if len(sizes) > 1:
        raise EestreamError("decode failure: range reader sizes don't all match")
    if not sizes:
        return ByteRanger()
    size = sizes.pop()
    if size % scheme.erasure_share_size != 0:
        raise EestreamError(
            "invalid erasure decoder and range reader combo. "
            f"range reader size ({size}) must be a multiple of erasure encoder block size "
            f"({scheme.erasure_share_size})"
        )
    return DecodedRanger(rangers, scheme, size, max_buffer_memory, force_error_detection)