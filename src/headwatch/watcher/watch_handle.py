"""
Single-path filesystem watch using watchdog.

watchdog observes directories, so the parent directory is watched
non-recursively and only events touching the target path are delivered.
Events arrive on the observer thread and are handed to the event loop
that was running when the watch started.
"""

import asyncio
import os
from pathlib import Path
from typing import Callable, Optional, Protocol, Union

from loguru import logger
from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from ..exceptions import WatchError
from ..schemas import WatchEvent

EventCallback = Callable[[WatchEvent], None]

# Reads of the head file (git itself reading HEAD) show up as opened /
# closed_no_write on inotify and must not count as changes.
CHANGE_EVENT_TYPES = {
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    "closed",
}


class WatchHandle(Protocol):
    """A watch on exactly one path."""

    def start(self, path: Union[str, Path], on_event: EventCallback) -> None:
        ...

    def stop(self) -> None:
        ...

    @property
    def path(self) -> Optional[str]:
        ...

    @property
    def is_active(self) -> bool:
        ...


class _TargetEventHandler(FileSystemEventHandler):
    """Forwards events for one file out of its parent directory's stream."""

    def __init__(self, target: str, deliver: EventCallback):
        self.target = target
        self.deliver = deliver

    def on_any_event(self, event: FileSystemEvent):
        if event.is_directory or event.event_type not in CHANGE_EVENT_TYPES:
            return

        touched = [event.src_path, getattr(event, "dest_path", "")]
        if not any(p and os.path.realpath(os.fsdecode(p)) == self.target for p in touched):
            return

        self.deliver(WatchEvent(filename=os.path.basename(self.target), kind=event.event_type))


class WatchdogHandle:
    """
    WatchHandle backed by a watchdog Observer.

    Starting on the path already being watched is a no-op; starting on
    another path replaces the current watch.
    """

    def __init__(self):
        self._observer: Optional[Observer] = None
        self._path: Optional[str] = None
        self._target: Optional[str] = None
        # Bumped on every start/stop so events queued for an old watch are dropped
        self._generation = 0

    @property
    def path(self) -> Optional[str]:
        return self._path

    @property
    def is_active(self) -> bool:
        return self._observer is not None

    def start(self, path: Union[str, Path], on_event: EventCallback) -> None:
        """
        Start watching a path.

        Args:
            path: File to watch
            on_event: Called on the event loop for every notification

        Raises:
            WatchError: If the watch cannot be scheduled
        """
        target = os.path.realpath(str(path))
        if self.is_active and target == self._target:
            logger.debug(f"Already watching {path}")
            return
        if self.is_active:
            self.stop()

        loop = asyncio.get_running_loop()
        self._generation += 1
        generation = self._generation

        def dispatch(event: WatchEvent) -> None:
            if generation != self._generation:
                return
            on_event(event)

        def deliver(event: WatchEvent) -> None:
            if loop.is_closed():
                return
            loop.call_soon_threadsafe(dispatch, event)

        parent = os.path.dirname(target)
        if not os.path.isdir(parent):
            raise WatchError(str(path), f"directory {parent} does not exist")

        observer = Observer()
        try:
            observer.schedule(_TargetEventHandler(target, deliver), parent, recursive=False)
            observer.start()
        except OSError as e:
            raise WatchError(str(path), str(e)) from e

        self._observer = observer
        self._path = str(path)
        self._target = target
        logger.debug(f"Watching {path}")

    def stop(self) -> None:
        """Stop the current watch. Safe to call when not active."""
        self._generation += 1
        if self._observer is None:
            return

        observer = self._observer
        self._observer = None
        observer.stop()
        observer.join()
        logger.debug(f"Stopped watching {self._path}")
