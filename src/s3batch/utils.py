"""Utility functions for location resolution and key handling."""

from __future__ import annotations

from .types import Location, LocationType

S3_SCHEME = "s3://"


def resolve_location(location: str) -> Location:
    """Resolve a location string into a :class:`Location`.

    Strings starting with ``s3://`` are parsed as ``s3://<bucket>/<prefix>``;
    anything else is treated as a local file path. Never raises: a malformed
    S3 location degrades to an empty bucket and/or prefix.

    Parameters
    ----------
    location : str
        S3 location or local file path.

    Returns
    -------
    Location
        Resolved location.
    """
    if location.startswith(S3_SCHEME):
        rest = location[len(S3_SCHEME):]
        bucket, sep, prefix = rest.partition("/")
        return Location(
            type=LocationType.S3,
            bucket=bucket,
            prefix=prefix if sep else "",
            file=None,
        )
    return Location(type=LocationType.FILE, bucket=None, prefix=None, file=location)


def normalize_prefix(prefix: str) -> str:
    """Append the trailing slash that listing prefixes require.

    Parameters
    ----------
    prefix : str
        Raw prefix.

    Returns
    -------
    str
        Prefix ending with ``/``.
    """
    if not prefix.endswith("/"):
        prefix += "/"
    return prefix


def file_name(key: str) -> str:
    """Return the last path segment of an S3 key."""
    return key.rsplit("/", 1)[-1]


def target_key(prefix: str, key: str) -> str:
    """Build the output key for *key* under a target *prefix*.

    The file name of the source key is preserved; the prefix is used
    verbatim, so ``"out/"`` and ``"out-"`` both work as expected.
    """
    return prefix + file_name(key)
