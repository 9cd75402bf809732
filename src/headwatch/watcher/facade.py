"""
Public API for the watcher subsystem.

Facade for building a head watcher wired to git and watchdog, and for
running it inside a host's event loop.
"""

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from loguru import logger

from ..exceptions import GitNotFoundError
from ..repository.inspector import GitInspector, RepositoryInspector
from ..schemas import HeadChangedEvent, RepoState
from .config import load_watcher_config
from .head_watcher import HeadWatcher
from .notifications import HEAD_CHANGED, UPDATE, NotificationBus
from .watch_handle import WatchdogHandle, WatchHandle


def create_inspector(config: Optional[Dict[str, Any]] = None) -> GitInspector:
    """Build a GitInspector from the watcher configuration."""
    config = config or load_watcher_config()
    return GitInspector(
        git_executable=config["git_executable"],
        timeout=config["git_timeout"],
        head_file=config["head_file"],
        marker_name=config["marker_name"],
    )


def create_head_watcher(
    inspector: Optional[RepositoryInspector] = None,
    handle: Optional[WatchHandle] = None,
    bus: Optional[NotificationBus] = None,
    **overrides: Any,
) -> HeadWatcher:
    """
    Build a head watcher.

    Args:
        inspector: Repository inspector (default: GitInspector)
        handle: Watch handle (default: WatchdogHandle)
        bus: Notification bus (default: a new one)
        **overrides: Values replacing entries of the watcher configuration

    Returns:
        HeadWatcher, not yet set up

    Raises:
        GitNotFoundError: If the default inspector is used and git is not on PATH
    """
    config = load_watcher_config()
    config.update(overrides)

    if inspector is None:
        git_inspector = create_inspector(config)
        if not git_inspector.available():
            raise GitNotFoundError(git_inspector.git_executable)
        inspector = git_inspector

    return HeadWatcher(
        inspector=inspector,
        handle=handle or WatchdogHandle(),
        bus=bus,
        debounce_ms=config["debounce_ms"],
        restart_hazard=config["restart_hazard"],
    )


async def inspect_directory(
    directory: Union[str, Path],
    inspector: Optional[RepositoryInspector] = None,
) -> Optional[RepoState]:
    """
    Inspect a directory once, without watching.

    Returns:
        RepoState, or None outside a repository
    """
    inspector = inspector or create_inspector()
    return await inspector.inspect(directory)


async def run_head_watcher(
    directory: Optional[Union[str, Path]] = None,
    on_head_changed: Optional[Callable[[HeadChangedEvent], Any]] = None,
    on_update: Optional[Callable[[], Any]] = None,
    stop_event: Optional[asyncio.Event] = None,
    watcher: Optional[HeadWatcher] = None,
) -> HeadWatcher:
    """
    Run a head watcher until stop_event is set.

    Args:
        directory: Directory to track (default: the current working directory)
        on_head_changed: Subscriber for HeadChanged notifications
        on_update: Subscriber for Update notifications
        stop_event: Event that ends the run (default: run until cancelled)
        watcher: Pre-built watcher (default: create_head_watcher())

    Returns:
        The watcher, closed
    """
    watcher = watcher or create_head_watcher()
    stop_event = stop_event or asyncio.Event()

    if on_head_changed is not None:
        watcher.bus.subscribe(HEAD_CHANGED, on_head_changed)
    if on_update is not None:
        watcher.bus.subscribe(UPDATE, on_update)

    async with watcher:
        watcher.setup(directory)
        logger.info(f"Head watcher started for {directory or Path.cwd()}")
        await stop_event.wait()

    logger.info(
        f"Head watcher stopped. "
        f"Received {watcher.events_received} events, "
        f"emitted {watcher.notifications_emitted} head notifications"
    )
    return watcher
