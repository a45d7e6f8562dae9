"""Readers that compute an ETag over the content passing through them."""

from __future__ import annotations

from typing import BinaryIO, Protocol


class _Hash(Protocol):
    def update(self, data: bytes, /) -> None: ...

    def digest(self) -> bytes: ...


class HashReader:
    """Reads from a stream while hashing everything read, to produce an ETag."""

    def __init__(self, reader: BinaryIO, hasher: _Hash) -> None:
        self._reader = reader
        self._hasher = hasher

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes, feeding them to the hash."""
        data = self._reader.read(size)
        if data:
            self._hasher.update(data)
        return data

    def current_etag(self) -> bytes:
        """Return the ETag of the content read so far."""
        return self._hasher.digest()

    def close(self) -> None:
        close = getattr(self._reader, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> HashReader:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()