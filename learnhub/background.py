"""Supervision for fire-and-forget asyncio tasks.

Tasks started with `spawn` are kept referenced until they finish and any
exception they raise is logged instead of vanishing with the task.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Set

logger = logging.getLogger(__name__)

_running: Set[asyncio.Task[Any]] = set()


def spawn(coro: Awaitable[Any], *, name: Optional[str] = None,
          on_error: Optional[Callable[[BaseException], None]] = None) -> asyncio.Task[Any]:
    """Start `coro` as a supervised background task.

    Args:
        coro: coroutine to run.
        name: task name, used in log lines.
        on_error: called with the exception if the task fails.
    """
    task = asyncio.create_task(coro, name=name)  # type: ignore[arg-type]
    _running.add(task)

    def _done(t: asyncio.Task[Any]) -> None:
        _running.discard(t)
        if t.cancelled():
            logger.debug("Background task %s cancelled", name or t.get_name())
            return
        exc = t.exception()
        if exc is None:
            return
        logger.error("Background task %s failed", name or t.get_name(), exc_info=exc)
        if on_error:
            try:
                on_error(exc)
            except Exception:  # noqa: BLE001
                logger.exception("on_error callback for task %s failed", name or t.get_name())

    task.add_done_callback(_done)
    return task


async def cancel_and_wait(task: Optional[asyncio.Task[Any]]) -> None:
    """Cancel `task` and wait until it has actually stopped."""
    if task is None or task.done():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


def running_tasks() -> int:
    return len(_running)


__all__ = ["spawn", "cancel_and_wait", "running_tasks"]
