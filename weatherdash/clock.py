from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

from weatherdash.formatting import unix_to_local_time

logger = logging.getLogger(__name__)


class LocalClock:
    """Per-widget ticking clock for a location's local time.

    Owned by the widget that shows it and stopped when that widget goes
    away. Not part of the shared dashboard state.
    """

    def __init__(
        self,
        timezone_offset: int,
        callback: Callable[[str], None],
        interval: float = 1.0,
        now: Callable[[], float] = time.time,
    ):
        self.timezone_offset = timezone_offset
        self.interval = interval
        self._callback = callback
        self._now = now
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def render(self) -> str:
        return unix_to_local_time(int(self._now()), self.timezone_offset)

    async def _run(self) -> None:
        while True:
            try:
                self._callback(self.render())
            except Exception:
                logger.exception("Clock callback failed")
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
