"""Simulated processing progress.

The completion call is a single request/response with no progress signal,
so the processing bar is advanced by a timer instead. The ticker never
reaches 100 on its own; the controller sets 100 once the stage really
finishes.
"""

import asyncio
from collections.abc import Callable
from types import TracebackType


class ProcessingTicker:
    """Async context manager that calls *on_progress* with rising percentages."""

    def __init__(
        self,
        on_progress: Callable[[int], None],
        *,
        interval_seconds: float,
        step: int,
        ceiling: int,
    ) -> None:
        self._on_progress = on_progress
        self._interval_seconds = interval_seconds
        self._step = max(1, step)
        self._ceiling = max(0, min(99, ceiling))
        self._task: asyncio.Task[None] | None = None

    async def __aenter__(self) -> "ProcessingTicker":
        self._task = asyncio.create_task(self._tick())
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        # Only a cancel aimed at the enclosing task may escape here.
        await asyncio.wait([task])

    async def _tick(self) -> None:
        progress = 0
        while progress < self._ceiling:
            await asyncio.sleep(self._interval_seconds)
            progress = min(self._ceiling, progress + self._step)
            self._on_progress(progress)
