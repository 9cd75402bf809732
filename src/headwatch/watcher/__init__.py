"""
Head watcher module for tracking a working directory's repository head.

Public API for building, running and querying head watchers.
"""

from .debounce import Debouncer, debounce_trailing
from .facade import create_head_watcher, create_inspector, inspect_directory, run_head_watcher
from .head_watcher import HeadWatcher, WatcherSession
from .notifications import HEAD_CHANGED, UPDATE, NotificationBus
from .task_queue import SerialTaskQueue
from .watch_handle import WatchdogHandle, WatchHandle

__all__ = [
    "Debouncer",
    "debounce_trailing",
    "create_head_watcher",
    "create_inspector",
    "inspect_directory",
    "run_head_watcher",
    "HeadWatcher",
    "WatcherSession",
    "HEAD_CHANGED",
    "UPDATE",
    "NotificationBus",
    "SerialTaskQueue",
    "WatchdogHandle",
    "WatchHandle",
]
