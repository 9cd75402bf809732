"""
Single-worker task queue.

Jobs run one after another on the event loop, so a job's body never
interleaves with another job's body except at its own await points.
"""

import asyncio
import contextlib
from typing import Any, Awaitable, Callable, Optional, Tuple

from loguru import logger

Job = Tuple[Callable[..., Awaitable[Any]], tuple, asyncio.Future]


class SerialTaskQueue:
    """FIFO queue of coroutine functions processed by one worker task."""

    def __init__(self, name: str = "headwatch"):
        self.name = name
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._closed = False
        self.jobs_run = 0

    def submit(self, fn: Callable[..., Awaitable[Any]], *args: Any) -> asyncio.Future:
        """
        Queue fn(*args) behind every job already submitted.

        Returns:
            Future resolved with the job's result (None if the job raised)

        Raises:
            RuntimeError: If the queue was closed
        """
        if self._closed:
            raise RuntimeError(f"Task queue '{self.name}' is closed")

        loop = asyncio.get_running_loop()
        if self._worker is None:
            self._queue = asyncio.Queue()
            self._worker = loop.create_task(self._run())

        future = loop.create_future()
        self._queue.put_nowait((fn, args, future))
        return future

    async def join(self) -> None:
        """Wait until every submitted job has finished."""
        if self._queue is not None:
            await self._queue.join()

    async def close(self) -> None:
        """Stop the worker. Jobs still queued are dropped."""
        self._closed = True
        if self._worker is None:
            return
        self._worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._worker
        self._worker = None

        while self._queue is not None and not self._queue.empty():
            _, _, future = self._queue.get_nowait()
            future.cancel()
            self._queue.task_done()

    async def _run(self) -> None:
        while True:
            fn, args, future = await self._queue.get()
            try:
                await asyncio.sleep(0)
                if future.cancelled():
                    continue
                try:
                    result = await fn(*args)
                except Exception as e:
                    logger.opt(exception=e).error(f"[{self.name}] job {getattr(fn, '__qualname__', fn)} failed")
                    result = None
                self.jobs_run += 1
                if not future.done():
                    future.set_result(result)
            finally:
                if not future.done():
                    # Worker cancelled mid-job
                    future.cancel()
                self._queue.task_done()
