"""Detached background work (fire-and-forget download runs)."""

import asyncio
import logging
from typing import Coroutine


class BackgroundRunner:
    """Runs coroutines as detached asyncio tasks.

    Holds a reference to every in-flight task (the event loop only keeps weak
    ones) and logs tasks that crash. Tasks are never cancelled; there is no
    cancellation hook for a submitted run.
    """

    def __init__(self):
        self.logger = logging.getLogger("rack_firmware.background")
        self._tasks: set[asyncio.Task] = set()

    def submit(self, name: str, coro: Coroutine) -> asyncio.Task:
        """Schedule ``coro`` on the running loop and return immediately."""
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        self.logger.debug(f"Submitted background task {name}")
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            self.logger.warning(f"Background task {task.get_name()} was cancelled")
            return
        exc = task.exception()
        if exc is not None:
            self.logger.error(f"Background task {task.get_name()} crashed: {exc!r}", exc_info=exc)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def wait_idle(self) -> None:
        """Wait until every submitted task (including ones submitted meanwhile) is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
