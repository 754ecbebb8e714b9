"""
Fire-and-forget background work on the running event loop.

Self-training writes must not add latency to a routing call, yet their
failures must still be visible. :class:`BackgroundTaskRunner` keeps strong
references to detached tasks (so they are not garbage-collected mid-flight),
logs every failure, and lets a shutdown path or a test wait for the
outstanding work with :meth:`BackgroundTaskRunner.drain`.

Example:
    >>> runner = BackgroundTaskRunner(name="self-training")
    >>> runner.submit(store.append_example("greeting", "hi", vector))
    >>> await runner.drain()
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine, Dict, Optional, Set

logger = logging.getLogger(__name__)


class BackgroundTaskRunner:
    """Tracks detached asyncio tasks and reports their failures."""

    def __init__(self, name: str = "background") -> None:
        self.name = name
        self._tasks: Set[asyncio.Task] = set()
        self._total_submitted = 0
        self._total_completed = 0
        self._total_failed = 0
        self._total_cancelled = 0

    def submit(
        self, coro: Coroutine[Any, Any, Any], task_name: Optional[str] = None
    ) -> asyncio.Task:
        """
        Schedule ``coro`` without awaiting it.

        Must be called from inside a running event loop.

        Args:
            coro: Coroutine to run in the background
            task_name: Optional label used in log messages

        Returns:
            The created task
        """
        task = asyncio.create_task(coro, name=task_name)
        self._tasks.add(task)
        self._total_submitted += 1
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)

        if task.cancelled():
            self._total_cancelled += 1
            logger.debug("%s task %s cancelled", self.name, task.get_name())
            return

        exc = task.exception()
        if exc is not None:
            self._total_failed += 1
            logger.error(
                "%s task %s failed: %s",
                self.name,
                task.get_name(),
                exc,
                exc_info=(type(exc), exc, exc.__traceback__),
            )
            return

        self._total_completed += 1

    async def drain(self, timeout: Optional[float] = None) -> None:
        """
        Wait for every task submitted so far, including ones they submit.

        Failures are already logged by the done callback and are not re-raised.

        Args:
            timeout: Give up waiting after this many seconds (tasks keep running)
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout

        while self._tasks:
            remaining = None if deadline is None else max(0.0, deadline - loop.time())
            _, pending = await asyncio.wait(set(self._tasks), timeout=remaining)
            if pending and deadline is not None and loop.time() >= deadline:
                logger.warning(
                    "%s: %d task(s) still running after %.1fs drain timeout",
                    self.name,
                    len(pending),
                    timeout,
                )
                return
            # Let done callbacks run before re-checking the set
            await asyncio.sleep(0)

    async def cancel_all(self) -> None:
        """Cancel outstanding tasks and wait for them to finish unwinding."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    @property
    def pending_count(self) -> int:
        """Number of tasks not finished yet."""
        return len(self._tasks)

    @property
    def stats(self) -> Dict[str, Any]:
        """Runner statistics."""
        return {
            "name": self.name,
            "pending": len(self._tasks),
            "total_submitted": self._total_submitted,
            "total_completed": self._total_completed,
            "total_failed": self._total_failed,
            "total_cancelled": self._total_cancelled,
        }
