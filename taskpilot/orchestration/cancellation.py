"""Cooperative cancellation for suspended completion and tool calls."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
from typing import Awaitable, TypeVar

T = TypeVar("T")


def raise_if_cancelled(cancel: asyncio.Event | None) -> None:
    """Raise CancelledError if the caller's cancellation signal is set."""
    if cancel is not None and cancel.is_set():
        raise asyncio.CancelledError("Cancelled by caller")


async def run_cancellable(awaitable: Awaitable[T], cancel: asyncio.Event | None) -> T:
    """
    Await a call, aborting it as soon as `cancel` is set.

    Task cancellation of the caller propagates as usual. When the signal
    fires first, the pending call is cancelled and CancelledError is raised.

    Args:
        awaitable: Completion or tool call
        cancel: Optional caller-supplied cancellation signal

    Returns:
        Result of the awaitable
    """
    if cancel is None:
        return await awaitable

    if cancel.is_set():
        if inspect.iscoroutine(awaitable):
            awaitable.close()
        raise asyncio.CancelledError("Cancelled by caller")

    call = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait(
            {call, waiter}, return_when=asyncio.FIRST_COMPLETED
        )
    except asyncio.CancelledError:
        call.cancel()
        raise
    finally:
        waiter.cancel()

    if call in done:
        return call.result()

    call.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await call
    raise asyncio.CancelledError("Cancelled by caller")
