"""Type definitions for s3batch."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, TypedDict


class LocationType(str, Enum):
    """Kind of a resolved location string."""

    S3 = "s3"
    FILE = "file"


@dataclass(frozen=True)
class Location:
    """A resolved location.

    S3 locations carry ``bucket`` and ``prefix`` and leave ``file`` unset;
    local-file locations carry only ``file``.
    """

    type: LocationType
    bucket: str | None = None
    prefix: str | None = None
    file: str | None = None

    @property
    def is_s3(self) -> bool:
        return self.type is LocationType.S3


# Body transformer: raw object bytes -> value handed to user functions
Transformer = Callable[[bytes], Any]


@dataclass(frozen=True)
class BatchConfig:
    """Immutable snapshot of the working context.

    Built by the fluent setters of :class:`~s3batch.engine.S3Batch` and
    captured once per operation.
    """

    bucket: str | None = None
    prefix: str | None = None
    marker: str = ""
    encoding: str = "utf-8"
    delimiter: str | None = None
    target_bucket: str | None = None
    target_prefix: str | None = None
    transformer: Transformer | None = None

    @property
    def has_target(self) -> bool:
        """Whether map/filter output goes to an alternate location."""
        return self.target_bucket is not None

    @property
    def is_split(self) -> bool:
        """Whether objects are decomposed into records."""
        return self.delimiter is not None


# Listing types
class ObjectSummary(TypedDict, total=False):
    """One entry of a ``list_objects_v2`` response."""

    Key: str
    Size: int
    ETag: str


class ListPage(TypedDict, total=False):
    """Subset of a ``list_objects_v2`` response used by the enumerator."""

    Contents: list[ObjectSummary]
    IsTruncated: bool
    KeyCount: int


# StreamingBody-like protocol
class StreamingBodyLike(Protocol):
    """Protocol for file-like objects compatible with StreamingBody."""

    def read(self, amt: int | None = None) -> bytes: ...
    def close(self) -> None: ...
