"""Random-access byte sources and helpers for block-aligned reads."""

from __future__ import annotations

import io
from abc import ABC, abstractmethod
from typing import BinaryIO


class Ranger(ABC):
    """A source of bytes of known size that can be read from any offset."""

    @abstractmethod
    def size(self) -> int:
        """Return the total number of bytes available."""

    @abstractmethod
    def range(self, offset: int, length: int) -> BinaryIO:
        """Return a readable stream of ``length`` bytes starting at ``offset``."""


class ByteRanger(Ranger):
    """A ranger over an in-memory byte string."""

    def __init__(self, data: bytes | None = None) -> None:
        self._data = bytes(data or b"")

    def size(self) -> int:
        return len(self._data)

    def range(self, offset: int, length: int) -> BinaryIO:
        if offset < 0:
            raise ValueError("negative offset")
        if length < 0:
            raise ValueError("negative length")
        if offset + length > len(self._data):
            raise ValueError("buffer runoff")
        return io.BytesIO(self._data[offset:offset + length])


class LimitedReader:
    """Reads at most ``limit`` bytes from an underlying stream."""

    def __init__(self, reader: BinaryIO, limit: int) -> None:
        self._reader = reader
        self._remaining = max(limit, 0)

    def read(self, size: int = -1) -> bytes:
        if self._remaining <= 0:
            return b""
        if size is None or size < 0 or size > self._remaining:
            size = self._remaining
        data = self._reader.read(size)
        self._remaining -= len(data)
        return data

    def close(self) -> None:
        self._reader.close()

    def __enter__(self) -> LimitedReader:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def calc_encompassing_blocks(offset: int, length: int, block_size: int) -> tuple[int, int]:
    """Return ``(first_block, block_count)`` of the blocks covering a byte range."""
    first_block = offset // block_size
    if length <= 0:
        return first_block, 0
    last_block = (offset + length - 1) // block_size
    return first_block, 1 + last_block - first_block