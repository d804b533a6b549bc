"""Enumeration of the working set of keys under a prefix."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .utils import normalize_prefix

if TYPE_CHECKING:
    from .client import ObjectStoreClient

logger = logging.getLogger(__name__)


async def list_keys(
    client: ObjectStoreClient,
    bucket: str,
    prefix: str,
    marker: str = "",
) -> list[str]:
    """Page through the listing and return every key under *prefix*.

    Each page starts after the last key of the previous one; enumeration
    stops at the first empty page. A directory marker object (a key equal to
    the prefix itself) at the head of the first page is skipped. Keys are
    returned in listing order with duplicates removed. Any failing page
    propagates its error and the keys gathered so far are discarded.

    Parameters
    ----------
    client : ObjectStoreClient
        Client used for the paginated listing.
    bucket : str
        S3 bucket.
    prefix : str
        Key prefix; ``/`` is appended when missing.
    marker : str
        Key to resume after. Empty to start from the beginning.

    Returns
    -------
    list[str]
        All keys of the working set.
    """
    directory_marker = normalize_prefix(prefix)
    keys: list[str] = []
    seen: set[str] = set()
    pages = 0
    while True:
        page = await client.list_page(bucket, prefix, marker)
        if not page:
            break
        pages += 1
        marker = page[-1]
        if pages == 1 and page[0] == directory_marker:
            page = page[1:]
        for key in page:
            if key not in seen:
                seen.add(key)
                keys.append(key)

    logger.debug("listed %d keys in %d pages under %s/%s", len(keys), pages, bucket, prefix)
    return keys
