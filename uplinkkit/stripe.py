"""Reading and decoding stripes from a set of erasure piece streams."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from typing import BinaryIO

from uplinkkit.errors import EestreamError
from uplinkkit.fec import NotEnoughSharesError, TooManyErrorsError
from uplinkkit.piecebuf import PieceBuffer
from uplinkkit.scheme import ErasureScheme

_COPY_CHUNK = 32 * 1024


def _describe(error: BaseException) -> str:
    return str(error) or type(error).__name__


def _pump(reader: BinaryIO, buf: PieceBuffer) -> None:
    try:
        while True:
            chunk = reader.read(_COPY_CHUNK)
            if not chunk:
                break
            buf.write(chunk)
    except Exception as exc:  # any failure of the piece becomes the buffer's error
        buf.set_error(exc)
        return
    buf.set_error(EOFError("EOF"))


class StripeReader:
    """Reads erasure shares from piece streams and decodes them into stripes."""

    def __init__(
        self,
        readers: Mapping[int, BinaryIO],
        scheme: ErasureScheme,
        max_buffer_memory: int = 0,
        force_error_detection: bool = False,
    ) -> None:
        self.scheme = scheme
        self._cond = threading.Condition()
        self._reader_count = len(readers)
        self._force_error_detection = force_error_detection
        self._inmap: dict[int, bytes] = {}
        self._errmap: dict[int, BaseException] = {}
        self._bufs: dict[int, PieceBuffer] = {}

        share_size = scheme.erasure_share_size
        buf_size = max_buffer_memory // max(self._reader_count, 1)
        buf_size -= buf_size % share_size
        buf_size = max(buf_size, share_size)

        for num, reader in readers.items():
            buf = PieceBuffer(buf_size, share_size, self._cond)
            self._bufs[num] = buf
            threading.Thread(target=_pump, args=(reader, buf), daemon=True).start()

    def __enter__(self) -> StripeReader:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Close all piece buffers."""
        first: EestreamError | None = None
        for buf in self._bufs.values():
            try:
                buf.close()
            except Exception as exc:
                if first is None:
                    first = EestreamError(_describe(exc))
        if first is not None:
            raise first

    def read_stripe(self, num: int) -> bytes:
        """Read and decode stripe number ``num``."""
        self._inmap.clear()
        with self._cond:
            while self._pending_readers():
                while self._read_available_shares(num) == 0:
                    self._cond.wait()
                if self._has_enough_shares():
                    try:
                        return self.scheme.decode(self._inmap)
                    except (NotEnoughSharesError, TooManyErrorsError):
                        if self._pending_readers():
                            continue
                        raise
        raise self._combine_errors(num)

    def _read_available_shares(self, num: int) -> int:
        count = 0
        for index, buf in self._bufs.items():
            if index in self._inmap or index in self._errmap:
                continue
            try:
                has_share = buf.has_share(num)
            except Exception as exc:
                self._errmap[index] = exc
                continue
            if has_share:
                try:
                    self._inmap[index] = buf.read_share(num)
                except Exception as exc:
                    self._errmap[index] = exc
                count += 1
        return count

    def _pending_readers(self) -> bool:
        good_readers = self._reader_count - len(self._errmap)
        return good_readers >= self.scheme.required_count and good_readers > len(self._inmap)

    def _has_enough_shares(self) -> bool:
        required = self.scheme.required_count
        has_required = len(self._inmap) >= required + 1
        has_minimum = (
            not self._force_error_detection
            and len(self._inmap) == required
            and not self._pending_readers()
        )
        return has_required or has_minimum

    def _combine_errors(self, num: int) -> EestreamError:
        if not self._errmap:
            return EestreamError("programmer error: no errors to combine")
        lines = sorted(
            f"\nerror retrieving piece {index:02d}: {_describe(error)}"
            for index, error in self._errmap.items()
        )
        return EestreamError(f"failed to download stripe {num}: {''.join(lines)}")