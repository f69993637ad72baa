# SPDX-FileCopyrightText: 2025 robot-visual-perception
#
# SPDX-License-Identifier: MIT
"""Fire-and-forget execution of request side effects."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, TypeVar

logger = logging.getLogger("responder.dispatch")

T = TypeVar("T")


class BackgroundDispatcher:
    """Run synchronous callbacks off the event loop without awaiting them.

    Each dispatch becomes an asyncio task wrapping ``asyncio.to_thread`` so a
    slow log sink never delays the response. Tasks are referenced until they
    finish (the loop only keeps weak references), and callback failures are
    logged here instead of surfacing in the caller.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch(self, callback: Callable[[T], Any], arg: T) -> asyncio.Task[Any]:
        task = asyncio.create_task(
            asyncio.to_thread(callback, arg),
            name=f"dispatch-{getattr(callback, '__name__', 'callback')}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Dispatched callback failed",
                exc_info=(type(exc), exc, exc.__traceback__),
                extra={"task": task.get_name()},
            )

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for outstanding dispatches, giving up after ``timeout`` seconds."""
        if not self._tasks:
            return
        _done, not_done = await asyncio.wait(set(self._tasks), timeout=timeout)
        if not_done:
            logger.warning(
                "Dispatched callbacks still running after drain timeout",
                extra={"pending": len(not_done), "timeout": timeout},
            )
