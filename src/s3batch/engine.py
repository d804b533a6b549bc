"""Batch operations over the objects stored under an S3 prefix."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections import deque
from collections.abc import Callable, Coroutine, Sequence
from typing import TYPE_CHECKING, Any

from .client import ObjectStoreClient
from .enumerator import list_keys
from .exceptions import ConfigurationError, InvalidLocationError
from .functions import Deferred, apply_all, as_deferred, check_callable, check_filter_result
from .settings import S3Settings
from .splitter import DEFAULT_DELIMITER, join_records, split_object
from .types import BatchConfig, Location, Transformer
from .utils import resolve_location, target_key

if TYPE_CHECKING:
    from botocore.client import BaseClient

logger = logging.getLogger(__name__)


def _is_not_empty(body: Any) -> bool:
    return len(body) > 0


class S3Batch:
    """Functional batch operations over a working context in S3.

    The working context is every object under ``s3://<bucket>/<prefix>/``.
    It is configured with chainable setters and then processed with
    :meth:`for_each`, :meth:`map`, :meth:`reduce`, :meth:`filter`,
    :meth:`clean` or :meth:`join`::

        batch = S3Batch(settings).context("s3://logs/2016/01/").split("\\n")
        await batch.map(lambda line: line.upper())

    Each setter replaces the immutable :class:`BatchConfig` held by the
    engine. An operation captures the configuration when it is called, so
    later setter calls never affect an operation already in progress.

    Operations validate their arguments when called (raising
    :class:`ConfigurationError` or :class:`TypeError` immediately) and return
    a coroutine that does the work. Keys are processed one at a time in
    listing order; in async mode the records of a single object are handed
    to the user function concurrently.
    """

    def __init__(
        self,
        s3_client_or_settings: BaseClient | S3Settings | None = None,
        *,
        context: str | None = None,
        marker: str | None = None,
        encoding: str | None = None,
        verbose: bool | None = None,
        page_size: int | None = None,
    ) -> None:
        """Initialize the batch engine.

        Parameters
        ----------
        s3_client_or_settings : BaseClient | S3Settings | None
            Boto3 S3 client or :class:`S3Settings` (which creates one). When
            *None*, settings are loaded from the environment.
        context : str | None
            Initial working context, e.g. ``"s3://bucket/path/to/folder"``.
        marker : str | None
            Key to start listing after.
        encoding : str | None
            Encoding of object bodies. Defaults to ``"utf-8"``.
        verbose : bool | None
            Log every store call at INFO level.
        page_size : int | None
            Maximum number of keys per listing page.

        Keyword arguments take precedence over the values in *settings*.
        """
        if s3_client_or_settings is None:
            s3_client_or_settings = S3Settings()

        if isinstance(s3_client_or_settings, S3Settings):
            settings = s3_client_or_settings
            s3_client = settings.create_client()
            context = context if context is not None else settings.context
            marker = marker if marker is not None else settings.marker
            encoding = encoding or settings.encoding
            verbose = verbose if verbose is not None else settings.verbose
            page_size = page_size or settings.page_size
        else:
            s3_client = s3_client_or_settings

        self.client = ObjectStoreClient(
            s3_client,
            encoding=encoding or "utf-8",
            verbose=bool(verbose),
            page_size=page_size or 1000,
        )
        self._config = BatchConfig(marker=marker or "", encoding=encoding or "utf-8")
        if context:
            self.context(context)

    @property
    def config(self) -> BatchConfig:
        """Current configuration snapshot."""
        return self._config

    @property
    def verbose(self) -> bool:
        return self.client.verbose

    @verbose.setter
    def verbose(self, value: bool) -> None:
        self.client.verbose = value

    def _update(self, **changes: Any) -> S3Batch:
        self._config = dataclasses.replace(self._config, **changes)
        return self

    # ------------------------------------------------------------------ #
    #  Fluent configuration                                               #
    # ------------------------------------------------------------------ #

    def context(self, location: str) -> S3Batch:
        """Set the working context.

        Parameters
        ----------
        location : str
            S3 location in the form ``"s3://<bucket>/path/to/folder/"``.

        Returns
        -------
        S3Batch
            ``self``.

        Raises
        ------
        InvalidLocationError
            If *location* is not an S3 location.
        """
        resolved = resolve_location(location)
        if not resolved.is_s3 or not resolved.bucket:
            raise InvalidLocationError(location)
        return self._update(bucket=resolved.bucket, prefix=resolved.prefix)

    def marker(self, marker: str) -> S3Batch:
        """Set the key that listing starts after."""
        return self._update(marker=marker or "")

    def encode(self, encoding: str) -> S3Batch:
        """Set the encoding of object bodies (default ``"utf-8"``)."""
        return self._update(encoding=encoding)

    def transform(self, transformer: Transformer | None) -> S3Batch:
        """Install a function applied to the raw bytes of every fetched object.

        The transformer replaces decoding: user functions receive whatever it
        returns. Pass *None* to remove it.
        """
        if transformer is not None:
            check_callable(transformer, "transformer")
        return self._update(transformer=transformer)

    def split(self, delimiter: str | None = DEFAULT_DELIMITER) -> S3Batch:
        """Work on the records of each object instead of whole bodies.

        Parameters
        ----------
        delimiter : str | None
            Record delimiter. Defaults to ``"\\n"``.
        """
        return self._update(delimiter=delimiter or DEFAULT_DELIMITER)

    def clear_split(self) -> S3Batch:
        """Go back to whole-object mode."""
        return self._update(delimiter=None)

    def target(self, location: str) -> S3Batch:
        """Send the output of :meth:`map` and :meth:`filter` to another location.

        Without a target, map and filter change the original objects.

        Parameters
        ----------
        location : str
            S3 location, e.g. ``"s3://bucket/output/"``.

        Raises
        ------
        InvalidLocationError
            If *location* is not an S3 location.
        """
        resolved = resolve_location(location)
        if not resolved.is_s3 or not resolved.bucket:
            raise InvalidLocationError(location)
        return self._update(target_bucket=resolved.bucket, target_prefix=resolved.prefix)

    def clear_target(self) -> S3Batch:
        """Make map and filter write back in place again."""
        return self._update(target_bucket=None, target_prefix=None)

    # ------------------------------------------------------------------ #
    #  Internals                                                          #
    # ------------------------------------------------------------------ #

    def _snapshot(self) -> BatchConfig:
        config = self._config
        if config.bucket is None or config.prefix is None:
            raise ConfigurationError("No working context set. Call context('s3://<bucket>/<prefix>') first.")
        return config

    async def _working_set(self, config: BatchConfig) -> deque[str]:
        keys = await list_keys(self.client, config.bucket, config.prefix, config.marker)
        return deque(keys)

    async def _fetch(self, config: BatchConfig, key: str) -> Any:
        return await self.client.get(
            config.bucket,
            key,
            encoding=config.encoding,
            transformer=config.transformer,
        )

    async def _records(self, config: BatchConfig, key: str) -> list[str]:
        return await split_object(
            self.client,
            config.bucket,
            key,
            config.delimiter,
            config.encoding,
            transformer=config.transformer,
        )

    async def _output(self, config: BatchConfig, key: str, body: Any) -> None:
        if config.has_target:
            await self.client.put(
                config.target_bucket,
                target_key(config.target_prefix, key),
                body,
                encoding=config.encoding,
            )
        else:
            await self.client.put(config.bucket, key, body, encoding=config.encoding)

    # ------------------------------------------------------------------ #
    #  Working context                                                    #
    # ------------------------------------------------------------------ #

    def list(self) -> Coroutine[Any, Any, list[str]]:
        """Return all the keys in the working context."""
        config = self._snapshot()
        return list_keys(self.client, config.bucket, config.prefix, config.marker)

    def join(self, delimiter: str | None = DEFAULT_DELIMITER) -> Coroutine[Any, Any, str]:
        """Join the bodies of the working context with *delimiter*.

        Nothing is written back. Bodies are joined whole even in split mode.
        """
        config = self._snapshot()
        return self._join(config, DEFAULT_DELIMITER if delimiter is None else delimiter)

    async def _join(self, config: BatchConfig, delimiter: str) -> str:
        keys = await self._working_set(config)
        bodies = []
        while keys:
            bodies.append(await self._fetch(config, keys.popleft()))
        return join_records(bodies, delimiter)

    # ------------------------------------------------------------------ #
    #  Batch operations                                                   #
    # ------------------------------------------------------------------ #

    def for_each(self, func: Callable[..., Any], is_async: bool = False) -> Coroutine[Any, Any, None]:
        """Call *func* on each object (or record, in split mode) for its side effects.

        Parameters
        ----------
        func : Callable[..., Any]
            Takes the body or record. Returns an awaitable if *is_async*.
        is_async : bool
            Whether *func* returns an awaitable.
        """
        check_callable(func)
        config = self._snapshot()
        return self._for_each(config, as_deferred(func, is_async), is_async)

    async def _for_each(self, config: BatchConfig, call: Deferred, is_async: bool) -> None:
        keys = await self._working_set(config)
        logger.debug("for_each over %d keys in %s/%s", len(keys), config.bucket, config.prefix)
        while keys:
            key = keys.popleft()
            if config.is_split:
                records = await self._records(config, key)
                await apply_all(call, records, concurrent=is_async)
            else:
                await call(await self._fetch(config, key))

    def map(self, func: Callable[..., Any], is_async: bool = False) -> Coroutine[Any, Any, None]:
        """Replace each object (or record, in split mode) with the return value of *func*.

        In split mode the new records are joined with the delimiter and the
        object is written once. If a target is set, output goes to
        ``target_prefix + file_name(key)`` in the target bucket; otherwise
        the original objects are overwritten.

        Parameters
        ----------
        func : Callable[..., Any]
            Takes the body or record and returns its replacement (or an
            awaitable of it if *is_async*).
        is_async : bool
            Whether *func* returns an awaitable.
        """
        check_callable(func)
        config = self._snapshot()
        return self._map(config, as_deferred(func, is_async), is_async)

    async def _map(self, config: BatchConfig, call: Deferred, is_async: bool) -> None:
        keys = await self._working_set(config)
        logger.debug("map over %d keys in %s/%s", len(keys), config.bucket, config.prefix)
        while keys:
            key = keys.popleft()
            if config.is_split:
                records = await self._records(config, key)
                new_records = await apply_all(call, records, concurrent=is_async)
                body = join_records(new_records, config.delimiter)
            else:
                body = await call(await self._fetch(config, key))
            await self._output(config, key, body)

    def reduce(
        self,
        func: Callable[..., Any],
        initial_value: Any = None,
        is_async: bool = False,
    ) -> Coroutine[Any, Any, Any]:
        """Fold the working context into a single value.

        Parameters
        ----------
        func : Callable[..., Any]
            Called as ``func(accumulator, body_or_record, key)`` and returns
            the new accumulator (or an awaitable of it if *is_async*).
        initial_value : Any
            First accumulator value.
        is_async : bool
            Whether *func* returns an awaitable.

        Returns
        -------
        Coroutine
            Resolves to the final accumulator.
        """
        check_callable(func)
        config = self._snapshot()
        return self._reduce(config, as_deferred(func, is_async), initial_value)

    async def _reduce(self, config: BatchConfig, call: Deferred, value: Any) -> Any:
        keys = await self._working_set(config)
        logger.debug("reduce over %d keys in %s/%s", len(keys), config.bucket, config.prefix)
        while keys:
            key = keys.popleft()
            if config.is_split:
                for record in await self._records(config, key):
                    value = await call(value, record, key)
            else:
                value = await call(value, await self._fetch(config, key), key)
        return value

    def filter(self, func: Callable[..., Any], is_async: bool = False) -> Coroutine[Any, Any, None]:
        """Filter the working context with a predicate.

        Whole-object mode: with a target, objects for which *func* is True
        are copied there; without one, objects for which it is False are
        deleted. Split mode: each object is rewritten (to the target, or in
        place) with only the records for which *func* is True.
        Objects are written as they are processed, so a failure on one
        object leaves the objects before it already rewritten.

        Parameters
        ----------
        func : Callable[..., Any]
            Returns a bool (or an awaitable of one if *is_async*).
        is_async : bool
            Whether *func* returns an awaitable.

        Raises
        ------
        FilterResultError
            When awaited, if *func* returns something other than a bool. In
            whole-object mode this happens before any copy or delete; in split
            mode, before the offending object is written.
        """
        check_callable(func)
        config = self._snapshot()
        call = as_deferred(func, is_async)
        if config.is_split:
            return self._filter_records(config, call, is_async)
        return self._filter_objects(config, call)

    async def _filter_objects(self, config: BatchConfig, call: Deferred) -> None:
        keys = await self._working_set(config)
        logger.debug("filter over %d keys in %s/%s", len(keys), config.bucket, config.prefix)
        keep: list[str] = []
        remove: list[str] = []
        while keys:
            key = keys.popleft()
            if check_filter_result(await call(await self._fetch(config, key)), key):
                keep.append(key)
            else:
                remove.append(key)

        if config.has_target:
            for key in keep:
                await self.client.copy(
                    config.bucket,
                    key,
                    config.target_bucket,
                    target_key(config.target_prefix, key),
                )
        else:
            await self.client.delete_many(config.bucket, remove)
        logger.debug("filter kept %d and dropped %d objects", len(keep), len(remove))

    async def _filter_records(self, config: BatchConfig, call: Deferred, is_async: bool) -> None:
        keys = await self._working_set(config)
        logger.debug("filter over records of %d keys in %s/%s", len(keys), config.bucket, config.prefix)
        while keys:
            key = keys.popleft()
            records = await self._records(config, key)
            results = await apply_all(call, records, concurrent=is_async)
            kept = [record for record, ok in zip(records, results) if check_filter_result(ok, key)]
            await self._output(config, key, join_records(kept, config.delimiter))

    def clean(self) -> Coroutine[Any, Any, None]:
        """Remove empty objects (or empty records, in split mode)."""
        return self.filter(_is_not_empty)

    # ------------------------------------------------------------------ #
    #  Store access                                                       #
    # ------------------------------------------------------------------ #

    def write(self, body: str | bytes, targets: str | Sequence[str]) -> Coroutine[Any, Any, list[Any]]:
        """Write *body* to one or more locations.

        Parameters
        ----------
        body : str | bytes
            Content to write.
        targets : str | Sequence[str]
            S3 locations (``s3://bucket/key``) or local file paths.

        Returns
        -------
        Coroutine
            Resolves to one response per target (``None`` for local files).
        """
        if isinstance(targets, str):
            targets = [targets]
        return self._write(self._config.encoding, body, [resolve_location(t) for t in targets])

    async def _write(self, encoding: str, body: str | bytes, locations: list[Location]) -> list[Any]:
        outputs = []
        for location in locations:
            if location.is_s3:
                outputs.append(self.client.put(location.bucket, location.prefix, body, encoding=encoding))
            else:
                outputs.append(self.client.write_file(location.file, body, encoding=encoding))
        return list(await asyncio.gather(*outputs))

    def split_object(
        self,
        bucket: str,
        key: str,
        delimiter: str | None = None,
        encoding: str | None = None,
    ) -> Coroutine[Any, Any, list[str]]:
        """Fetch an object and split it into records (default delimiter ``"\\n"``)."""
        return split_object(
            self.client,
            bucket,
            key,
            delimiter,
            encoding,
            transformer=self._config.transformer,
        )

    async def get(self, bucket_or_location: str, key: str | None = None) -> Any:
        """Get an object body, applying the configured encoding and transformer."""
        return await self.client.get(
            bucket_or_location,
            key,
            encoding=self._config.encoding,
            transformer=self._config.transformer,
        )

    async def put(self, bucket: str, key: str, body: str | bytes) -> dict[str, Any]:
        """Put an object, encoding string bodies with the configured encoding."""
        return await self.client.put(bucket, key, body, encoding=self._config.encoding)

    async def copy(self, source_bucket: str, source_key: str, target_bucket: str, target_key: str) -> dict[str, Any]:
        """Copy an object."""
        return await self.client.copy(source_bucket, source_key, target_bucket, target_key)

    async def delete(self, bucket: str, key: str | Sequence[str]) -> Any:
        """Delete an object, or a list of objects."""
        return await self.client.delete(bucket, key)
