"""s3batch - functional batch operations over objects stored under an S3 prefix."""

from __future__ import annotations

from .client import ObjectStoreClient
from .engine import S3Batch
from .enumerator import list_keys
from .exceptions import (
    ConfigurationError,
    DeleteObjectsError,
    FilterResultError,
    InvalidLocationError,
    NotCallableError,
    S3BatchError,
)
from .functions import apply_all, as_deferred, check_callable
from .settings import S3Settings
from .splitter import join_records, split_body, split_object
from .types import (
    BatchConfig,
    ListPage,
    Location,
    LocationType,
    ObjectSummary,
    StreamingBodyLike,
    Transformer,
)
from .utils import (
    file_name,
    normalize_prefix,
    resolve_location,
    target_key,
)

__all__ = [
    # Main classes
    "S3Batch",
    "ObjectStoreClient",
    "S3Settings",
    # Types
    "BatchConfig",
    "Location",
    "LocationType",
    "ListPage",
    "ObjectSummary",
    "StreamingBodyLike",
    "Transformer",
    # Exceptions
    "S3BatchError",
    "ConfigurationError",
    "InvalidLocationError",
    "NotCallableError",
    "FilterResultError",
    "DeleteObjectsError",
    # Working set and records
    "list_keys",
    "split_body",
    "split_object",
    "join_records",
    # User functions
    "as_deferred",
    "apply_all",
    "check_callable",
    # Utils
    "resolve_location",
    "normalize_prefix",
    "file_name",
    "target_key",
]
