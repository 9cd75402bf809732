"""
Trailing-edge debounce on the asyncio event loop.
"""

import asyncio
import inspect
from typing import Any, Callable, Optional, Set

from loguru import logger


class Debouncer:
    """
    Collapses bursts of calls into one execution, window_ms after the last call.

    Only one execution is pending at a time; a new call replaces it and the
    latest arguments win. Coroutine functions run in a task after yielding
    to the loop once.
    """

    def __init__(
        self,
        window_ms: float,
        fn: Callable[..., Any],
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.window_ms = window_ms
        self.fn = fn
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()

    def __call__(self, *args: Any) -> None:
        loop = self._loop or asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
        self._handle = loop.call_later(self.window_ms / 1000, self._fire, loop, args)

    @property
    def pending(self) -> bool:
        """True while an execution is scheduled but has not started."""
        return self._handle is not None

    def cancel(self) -> None:
        """Drop the pending execution, if any. Running tasks are left alone."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, loop: asyncio.AbstractEventLoop, args: tuple) -> None:
        self._handle = None
        if inspect.iscoroutinefunction(self.fn):
            task = loop.create_task(self._run(args))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            return
        try:
            self.fn(*args)
        except Exception as e:
            logger.opt(exception=e).error(f"Debounced callback {self._name} failed")

    async def _run(self, args: tuple) -> None:
        await asyncio.sleep(0)
        try:
            await self.fn(*args)
        except Exception as e:
            logger.opt(exception=e).error(f"Debounced callback {self._name} failed")

    @property
    def _name(self) -> str:
        return getattr(self.fn, "__qualname__", repr(self.fn))


def debounce_trailing(
    window_ms: float,
    fn: Callable[..., Any],
    loop: Optional[asyncio.AbstractEventLoop] = None,
) -> Debouncer:
    """
    Wrap fn so repeated calls within window_ms collapse into one trailing call.

    Args:
        window_ms: Quiet period in milliseconds measured from the last call
        fn: Plain or coroutine function to run
        loop: Loop to schedule on (default: the running loop at call time)

    Returns:
        Debouncer to call in place of fn
    """
    return Debouncer(window_ms, fn, loop=loop)
