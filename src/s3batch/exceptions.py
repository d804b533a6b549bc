"""Domain-specific exceptions for s3batch."""

from __future__ import annotations

from typing import Any


class S3BatchError(Exception):
    """Base exception for s3batch errors."""
    pass


class ConfigurationError(S3BatchError, ValueError):
    """Raised when the batch configuration is invalid or incomplete."""
    pass


class InvalidLocationError(ConfigurationError):
    """Raised when a location is required to be an S3 location but is not."""
    def __init__(self, location: str) -> None:
        self.location = location
        super().__init__(
            f'Context needs to be a valid s3 path. Ex: "s3://<bucket>/path/to/folder[/object]." Got: {location!r}'
        )


class NotCallableError(ConfigurationError, TypeError):
    """Raised when a user function argument is not callable."""
    def __init__(self, name: str, value: Any) -> None:
        self.name = name
        self.value = value
        super().__init__(f"'{name}' must be a function, got {type(value).__name__}")


class FilterResultError(S3BatchError, TypeError):
    """Raised when a filter predicate returns something other than a bool."""
    def __init__(self, result: Any, key: str | None = None) -> None:
        self.result = result
        self.key = key
        message = f"Filter function must return a boolean, got {type(result).__name__}"
        if key is not None:
            message = f"{message} (key: {key})"
        super().__init__(message)


class DeleteObjectsError(S3BatchError):
    """Raised when a batched delete reports per-key failures."""
    def __init__(self, bucket: str, errors: dict[str, str]) -> None:
        self.bucket = bucket
        self.errors = errors
        super().__init__(f"Failed to delete {len(errors)} object(s) from bucket '{bucket}': {errors}")
