"""Asynchronous wrapper around the boto3 S3 client."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .exceptions import DeleteObjectsError
from .types import ListPage, StreamingBodyLike, Transformer
from .utils import normalize_prefix, resolve_location

if TYPE_CHECKING:
    from botocore.client import BaseClient

logger = logging.getLogger(__name__)

# S3 accepts at most 1000 keys per DeleteObjects request
MAX_DELETE_BATCH = 1000


class ObjectStoreClient:
    """Awaitable get/put/copy/delete/list over a boto3 S3 client.

    Every boto3 call runs in a worker thread through :func:`asyncio.to_thread`
    so the event loop is never blocked. Transport errors (usually
    :class:`botocore.exceptions.ClientError`) propagate unchanged.
    """

    def __init__(
        self,
        s3_client: BaseClient,
        *,
        encoding: str = "utf-8",
        verbose: bool = False,
        page_size: int = 1000,
    ) -> None:
        """Initialize the client wrapper.

        Parameters
        ----------
        s3_client : BaseClient
            Boto3 S3 client.
        encoding : str
            Default encoding for decoding and encoding bodies.
        verbose : bool
            Log every store call at INFO instead of DEBUG.
        page_size : int
            ``MaxKeys`` for listing calls.
        """
        self.s3_client = s3_client
        self.encoding = encoding
        self.verbose = verbose
        self.page_size = page_size

    def _log(self, msg: str, *args: Any) -> None:
        logger.log(logging.INFO if self.verbose else logging.DEBUG, msg, *args)

    # ------------------------------------------------------------------ #
    #  Read APIs                                                          #
    # ------------------------------------------------------------------ #

    def _read_object(self, bucket: str, key: str) -> bytes:
        resp = self.s3_client.get_object(Bucket=bucket, Key=key)
        body: StreamingBodyLike = resp["Body"]
        try:
            return body.read()
        finally:
            body.close()

    async def get(
        self,
        bucket_or_location: str,
        key: str | None = None,
        *,
        encoding: str | None = None,
        transformer: Transformer | None = None,
    ) -> Any:
        """Get an object body.

        Parameters
        ----------
        bucket_or_location : str
            Either an ``s3://bucket/key`` location or a bucket name.
        key : str | None
            Object key when *bucket_or_location* is a bucket name.
        encoding : str | None
            Encoding used to decode the body. Defaults to the client encoding.
        transformer : Transformer | None
            If set, applied to the raw bytes instead of decoding them.

        Returns
        -------
        Any
            The decoded body, or whatever *transformer* returns.
        """
        location = resolve_location(bucket_or_location)
        if location.is_s3:
            bucket, key = location.bucket, location.prefix
        else:
            bucket = bucket_or_location
        if key is None:
            raise ValueError("A key is required when a bucket name is given")

        self._log("get object %s %s", bucket, key)
        raw = await asyncio.to_thread(self._read_object, bucket, key)
        if transformer is not None:
            return transformer(raw)
        return raw.decode(encoding or self.encoding)

    async def list_page(self, bucket: str, prefix: str, marker: str = "") -> list[str]:
        """List one page of keys under *prefix*, starting after *marker*.

        A trailing ``/`` is appended to *prefix* when missing.

        Parameters
        ----------
        bucket : str
            S3 bucket.
        prefix : str
            Key prefix.
        marker : str
            Key to start listing after. Empty for the beginning.

        Returns
        -------
        list[str]
            Keys in lexicographic order. Empty when the listing is exhausted.
        """
        prefix = normalize_prefix(prefix)
        kwargs: dict[str, Any] = {"Bucket": bucket, "Prefix": prefix, "MaxKeys": self.page_size}
        if marker:
            kwargs["StartAfter"] = marker

        self._log("list objects %s %s after %r", bucket, prefix, marker)
        page: ListPage = await asyncio.to_thread(self.s3_client.list_objects_v2, **kwargs)
        return [obj["Key"] for obj in page.get("Contents", [])]

    # ------------------------------------------------------------------ #
    #  Write APIs                                                         #
    # ------------------------------------------------------------------ #

    async def put(
        self,
        bucket: str,
        key: str,
        body: str | bytes,
        *,
        encoding: str | None = None,
    ) -> dict[str, Any]:
        """Put an object.

        Parameters
        ----------
        bucket : str
            S3 bucket.
        key : str
            Object key.
        body : str | bytes
            Object body; strings are encoded with *encoding*.
        encoding : str | None
            Defaults to the client encoding.

        Returns
        -------
        dict[str, Any]
            The raw ``put_object`` response.
        """
        if isinstance(body, str):
            body = body.encode(encoding or self.encoding)
        self._log("put object %s %s", bucket, key)
        return await asyncio.to_thread(self.s3_client.put_object, Bucket=bucket, Key=key, Body=body)

    async def copy(
        self,
        source_bucket: str,
        source_key: str,
        target_bucket: str,
        target_key: str,
    ) -> dict[str, Any]:
        """Copy an object server side.

        Returns
        -------
        dict[str, Any]
            The raw ``copy_object`` response.
        """
        self._log("copy object %s %s to %s %s", source_bucket, source_key, target_bucket, target_key)
        return await asyncio.to_thread(
            self.s3_client.copy_object,
            Bucket=target_bucket,
            Key=target_key,
            CopySource={"Bucket": source_bucket, "Key": source_key},
        )

    async def write_file(self, path: str | Path, body: str | bytes, *, encoding: str | None = None) -> None:
        """Write *body* to a local file."""
        path = Path(path)
        self._log("write file %s", path)
        if isinstance(body, str):
            await asyncio.to_thread(path.write_text, body, encoding=encoding or self.encoding)
        else:
            await asyncio.to_thread(path.write_bytes, body)

    # ------------------------------------------------------------------ #
    #  Delete APIs                                                        #
    # ------------------------------------------------------------------ #

    async def delete(self, bucket: str, key: str | Sequence[str]) -> Any:
        """Delete one object, or several when *key* is a list of keys."""
        if not isinstance(key, str):
            return await self.delete_many(bucket, key)
        self._log("delete object %s %s", bucket, key)
        return await asyncio.to_thread(self.s3_client.delete_object, Bucket=bucket, Key=key)

    async def delete_many(self, bucket: str, keys: Sequence[str]) -> list[dict[str, Any]]:
        """Delete a list of objects.

        Keys are sent in batches of at most 1000. An empty list is a no-op.

        Parameters
        ----------
        bucket : str
            S3 bucket.
        keys : Sequence[str]
            Keys to delete.

        Returns
        -------
        list[dict[str, Any]]
            One raw ``delete_objects`` response per batch.

        Raises
        ------
        DeleteObjectsError
            If S3 reports per-key failures.
        """
        responses: list[dict[str, Any]] = []
        pending = list(keys)
        while pending:
            batch = pending[:MAX_DELETE_BATCH]
            pending = pending[MAX_DELETE_BATCH:]
            self._log("delete objects %s %s", bucket, batch)
            resp = await asyncio.to_thread(
                self.s3_client.delete_objects,
                Bucket=bucket,
                Delete={"Objects": [{"Key": k} for k in batch]},
            )
            errors = {err["Key"]: err.get("Message", err.get("Code", "")) for err in resp.get("Errors", [])}
            if errors:
                raise DeleteObjectsError(bucket, errors)
            responses.append(resp)
        return responses
