from __future__ import annotations

import asyncio
import contextlib
import logging

logger = logging.getLogger(__name__)


class BackgroundWorker:
    """
    Base class for services that run a periodic background loop.

    ``wake()`` cuts the current wait short; it may be called from any
    thread once the worker has started.
    """

    def __init__(self, *, interval: float, name: str) -> None:
        self._interval = interval
        self._name = name
        self._task: asyncio.Task[None] | None = None
        self._loop_ref: asyncio.AbstractEventLoop | None = None
        self._wakeup: asyncio.Event | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        await self._on_start()
        self._loop_ref = asyncio.get_running_loop()
        self._wakeup = asyncio.Event()
        self._task = asyncio.create_task(self._loop(), name=self._name)
        logger.info("%s started (every %ss)", self._name, self._interval)

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
            logger.info("%s stopped", self._name)
        await self._on_stop()

    def wake(self) -> None:
        loop, event = self._loop_ref, self._wakeup
        if loop is None or event is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(event.set)

    async def _on_start(self) -> None:
        pass

    async def _on_stop(self) -> None:
        pass

    async def _tick(self) -> None:
        raise NotImplementedError

    async def _wait(self) -> None:
        assert self._wakeup is not None
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(self._wakeup.wait(), timeout=self._interval)
        self._wakeup.clear()

    async def _loop(self) -> None:
        while True:
            await self._wait()
            try:
                await self._tick()
            except Exception:
                logger.exception("%s tick failed — will retry", self._name)
