"""
headwatch - Repository head watcher

Tracks the version-control head of a working directory and notifies
subscribers when it changes, without polling.
"""

__version__ = "0.1.0"

# Core exports
from headwatch.schemas import HeadChangedEvent, RepoState, WatchEvent, WatcherState, WatcherStatus
from headwatch.repository import GitInspector, RepositoryInspector
from headwatch.watcher import (
    HEAD_CHANGED,
    UPDATE,
    HeadWatcher,
    NotificationBus,
    WatchdogHandle,
    create_head_watcher,
    inspect_directory,
    run_head_watcher,
)

__all__ = [
    "__version__",
    "HeadChangedEvent",
    "RepoState",
    "WatchEvent",
    "WatcherState",
    "WatcherStatus",
    "GitInspector",
    "RepositoryInspector",
    "HEAD_CHANGED",
    "UPDATE",
    "HeadWatcher",
    "NotificationBus",
    "WatchdogHandle",
    "create_head_watcher",
    "inspect_directory",
    "run_head_watcher",
]
