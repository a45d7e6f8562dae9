"""Iteration over all buckets, one listing page at a time."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator

from uplinkkit.types import Bucket, BucketList, BucketListOptions, ListDirection


class BucketClient(ABC):
    """A connection that can list buckets."""

    @abstractmethod
    def list_buckets(self, options: BucketListOptions) -> BucketList:
        """Return one page of buckets selected by ``options``."""

    @abstractmethod
    def close(self) -> None:
        """Release the connection."""

    def __enter__(self) -> BucketClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _load_page(dial_client: Callable[[], BucketClient], options: BucketListOptions) -> BucketList:
    client = dial_client()
    try:
        return client.list_buckets(options)
    finally:
        client.close()


def iterate_buckets(
    dial_client: Callable[[], BucketClient],
    cursor: str = "",
    limit: int = 0,
) -> Iterator[Bucket]:
    """Yield every bucket after ``cursor``, dialing a fresh client for each page."""
    options = BucketListOptions(cursor=cursor, direction=ListDirection.AFTER, limit=limit)
    while True:
        page = _load_page(dial_client, options)
        if not page.items:
            return
        yield from page.items
        if not page.more:
            return
        options = options.next_page(page)