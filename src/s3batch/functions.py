"""Normalization of user functions into a single awaitable shape."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from .exceptions import FilterResultError, NotCallableError

Deferred = Callable[..., Awaitable[Any]]


def check_callable(fn: Any, name: str = "func") -> None:
    """Raise :class:`NotCallableError` unless *fn* is callable."""
    if not callable(fn):
        raise NotCallableError(name, fn)


def as_deferred(fn: Callable[..., Any], is_async: bool = False) -> Deferred:
    """Wrap *fn* so that every call can be awaited.

    Parameters
    ----------
    fn : Callable[..., Any]
        User function. When *is_async* is True it must return an awaitable.
    is_async : bool
        Whether *fn* returns an awaitable instead of a plain value.

    Returns
    -------
    Deferred
        Coroutine function with the same arguments as *fn*. A plain *fn* is
        called synchronously and its result (or exception) is delivered
        when the coroutine is awaited.
    """
    if is_async:
        async def call(*args: Any) -> Any:
            return await fn(*args)
    else:
        async def call(*args: Any) -> Any:
            return fn(*args)
    return call


async def apply_all(call: Deferred, records: Sequence[Any], *, concurrent: bool = False) -> list[Any]:
    """Apply *call* to every record and return the results in record order.

    With *concurrent* set, all calls are scheduled at once and awaited
    together; the first failure cancels the calls still pending and is
    re-raised as is. Otherwise records are processed one after another.
    """
    if not concurrent:
        return [await call(record) for record in records]

    tasks = [asyncio.ensure_future(call(record)) for record in records]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def check_filter_result(result: Any, key: str | None = None) -> bool:
    """Return *result* if it is a bool, else raise :class:`FilterResultError`."""
    if not isinstance(result, bool):
        raise FilterResultError(result, key)
    return result
