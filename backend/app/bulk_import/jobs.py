"""Background batch task with pollable progress.

Wraps one asyncio task (an enrichment or emission run) so request handlers can
start it, poll `progress`/`done`, and await completion in tests.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger("clearpath.jobs")

ProgressCallback = Callable[[int], None]


class BatchJob:
    """A single run of a sequential batch stage."""

    def __init__(self, name: str):
        self.name = name
        self.progress = 0
        self.reports: list[int] = []
        self.result: Any = None
        self.error: str | None = None
        self._task: asyncio.Task | None = None

    def report(self, value: int) -> None:
        """Progress callback handed to the stage. Reports never move backwards."""
        value = max(0, min(100, int(value)))
        if value < self.progress:
            logger.debug("Ignoring out-of-order progress %d < %d for %s", value, self.progress, self.name)
            return
        self.progress = value
        self.reports.append(value)

    def start(self, runner: Callable[[ProgressCallback], Awaitable[Any]]) -> "BatchJob":
        """Schedule `runner(self.report)` on the running event loop."""
        if self._task is not None:
            raise RuntimeError(f"Job {self.name} already started")
        self._task = asyncio.create_task(self._run(runner), name=self.name)
        return self

    async def _run(self, runner: Callable[[ProgressCallback], Awaitable[Any]]) -> Any:
        logger.info("Batch job %s started", self.name)
        try:
            self.result = await runner(self.report)
        except Exception as e:
            self.error = str(e) or e.__class__.__name__
            logger.exception("Batch job %s failed", self.name)
            return None
        logger.info("Batch job %s finished (progress=%d)", self.name, self.progress)
        return self.result

    @property
    def started(self) -> bool:
        return self._task is not None

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def wait(self) -> Any:
        """Await completion and return the runner's result (None if it failed, see `error`)."""
        if self._task is None:
            raise RuntimeError(f"Job {self.name} was never started")
        return await self._task
