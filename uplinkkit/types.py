"""Listing options and results for buckets and objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum


class ListDirection(IntEnum):
    """Direction of a listing relative to its cursor."""

    BEFORE = -2
    """Backwards from the cursor, without it (not supported)."""
    BACKWARD = -1
    """Backwards from the cursor, including it (not supported)."""
    FORWARD = 0
    """Forwards from the cursor, including it."""
    AFTER = 1
    """Forwards from the cursor, without it."""


@dataclass(frozen=True)
class Bucket:
    """Information about a bucket."""

    name: str
    created: datetime | None = None
    attribution: str = ""


@dataclass(frozen=True)
class BucketList:
    """One page of buckets."""

    more: bool = False
    items: tuple[Bucket, ...] = ()


@dataclass(frozen=True)
class BucketListOptions:
    """Options for listing buckets."""

    cursor: str = ""
    direction: ListDirection = ListDirection.FORWARD
    limit: int = 0

    def next_page(self, bucket_list: BucketList) -> BucketListOptions:
        """Return the options for listing the page after ``bucket_list``."""
        if not bucket_list.more or not bucket_list.items:
            return BucketListOptions()
        return BucketListOptions(
            cursor=bucket_list.items[-1].name,
            direction=ListDirection.AFTER,
            limit=self.limit,
        )


@dataclass(frozen=True)
class ObjectEntry:
    """Information about an object or a prefix in a listing."""

    path: str
    is_prefix: bool = False
    version: int = 0
    size: int = 0
    metadata: dict[str, str] = field(default_factory=dict)
    created: datetime | None = None
    modified: datetime | None = None
    expires: datetime | None = None


@dataclass(frozen=True)
class ObjectList:
    """One page of objects."""

    bucket: str = ""
    prefix: str = ""
    more: bool = False
    items: tuple[ObjectEntry, ...] = ()


@dataclass(frozen=True)
class ListOptions:
    """Options for listing objects. The cursor is relative to the prefix."""

    prefix: str = ""
    cursor: str = ""
    delimiter: str = ""
    recursive: bool = False
    direction: ListDirection = ListDirection.FORWARD
    limit: int = 0
    include_custom_metadata: bool = False
    include_system_metadata: bool = False
    status: int = 0

    def next_page(self, object_list: ObjectList) -> ListOptions:
        """Return the options for listing the page after ``object_list``."""
        if not object_list.more or not object_list.items:
            return ListOptions()
        return ListOptions(
            prefix=self.prefix,
            cursor=object_list.items[-1].path,
            delimiter=self.delimiter,
            recursive=self.recursive,
            include_system_metadata=self.include_system_metadata,
            include_custom_metadata=self.include_custom_metadata,
            direction=ListDirection.AFTER,
            limit=self.limit,
        )