"""Decomposition of object bodies into delimited records."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .client import ObjectStoreClient
    from .types import Transformer

DEFAULT_DELIMITER = "\n"


def split_body(body: str, delimiter: str = DEFAULT_DELIMITER) -> list[str]:
    """Split *body* into records.

    An empty body yields no records rather than a single empty record.
    """
    if body == "":
        return []
    return body.split(delimiter)


def join_records(records: Iterable[Any], delimiter: str = DEFAULT_DELIMITER) -> str:
    """Join records back into a body, converting non-string records with ``str``."""
    return delimiter.join(r if isinstance(r, str) else str(r) for r in records)


async def split_object(
    client: ObjectStoreClient,
    bucket: str,
    key: str,
    delimiter: str | None = None,
    encoding: str | None = None,
    *,
    transformer: Transformer | None = None,
) -> list[str]:
    """Fetch an object and split its body into records.

    Parameters
    ----------
    client : ObjectStoreClient
        Client used to fetch the object.
    bucket : str
        S3 bucket.
    key : str
        Object key.
    delimiter : str | None
        Record delimiter. Defaults to ``"\\n"``.
    encoding : str | None
        Body encoding. Defaults to ``"utf-8"``.
    transformer : Transformer | None
        Optional body transformer; must return a string.

    Returns
    -------
    list[str]
        Records in body order.
    """
    body = await client.get(bucket, key, encoding=encoding or "utf-8", transformer=transformer)
    return split_body(body, DEFAULT_DELIMITER if delimiter is None else delimiter)
