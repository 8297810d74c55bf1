"""
Detached background tasks.

Some side effects (the delayed formatting pass, the results-log append)
must outlive the request or session that scheduled them. asyncio only
keeps weak references to tasks, so they are held here until done.
"""

import asyncio
import logging
from typing import Awaitable, Optional, Set

logger = logging.getLogger(__name__)

_detached: Set[asyncio.Task] = set()


def _on_done(task: asyncio.Task) -> None:
    _detached.discard(task)
    if task.cancelled():
        logger.debug(f"Detached task {task.get_name()} cancelled")
        return
    exc = task.exception()
    if exc is not None:
        logger.warning(f"Detached task {task.get_name()} failed: {exc}")


def spawn_detached(coro: Awaitable, name: Optional[str] = None) -> asyncio.Task:
    """
    Run a coroutine in the background, uncoupled from its caller.

    The task is never cancelled by session teardown. Failures are logged
    as warnings and go no further.
    """
    task = asyncio.ensure_future(coro)
    if name:
        task.set_name(name)
    _detached.add(task)
    task.add_done_callback(_on_done)
    return task


def pending_detached_tasks() -> list[asyncio.Task]:
    """Detached tasks that have not finished yet."""
    return [t for t in _detached if not t.done()]
