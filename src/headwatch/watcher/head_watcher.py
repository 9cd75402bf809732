"""
Head watcher: keeps track of a directory's repository head and notifies on change.

The watcher arms a single WatchHandle on the repository's head reference
file, debounces bursts of filesystem events, re-inspects the repository and
emits HeadChanged / Update notifications only when the normalized head
actually differs. Bootstraps and re-checks run one at a time through a
SerialTaskQueue on the event loop.
"""

import asyncio
import functools
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from loguru import logger

from ..exceptions import WatchError
from ..repository.inspector import RepositoryInspector
from ..schemas import HeadChangedEvent, RepoState, WatchEvent, WatcherState, WatcherStatus
from .debounce import Debouncer, debounce_trailing
from .notifications import NotificationBus
from .task_queue import SerialTaskQueue
from .watch_handle import WatchHandle


@dataclass
class WatcherSession:
    """Binding between the watched head reference file and its debounced re-check."""
    watched_path: str
    handle: WatchHandle
    owner_directory: str
    trigger: Debouncer


class HeadWatcher:
    """
    State machine tracking the head of the repository owning a directory.

    States:
        IDLE: no repository, or nothing to watch
        ARMED: watching the head reference file
        TRANSITIONING: a bootstrap or re-check is in flight
    """

    def __init__(
        self,
        inspector: RepositoryInspector,
        handle: WatchHandle,
        bus: Optional[NotificationBus] = None,
        debounce_ms: float = 100,
        restart_hazard: bool = False,
        log: Any = None,
    ):
        """
        Initialize the head watcher.

        Args:
            inspector: Answers which repository owns a directory and its head
            handle: The single watch handle this watcher arms and re-arms
            bus: Where notifications go (default: a new NotificationBus)
            debounce_ms: Trailing window for directory changes and file events
            restart_hazard: Yield to the loop between stopping and restarting the handle
            log: Logger to use (default: the loguru logger)
        """
        self.inspector = inspector
        self.handle = handle
        self.bus = bus or NotificationBus()
        self.debounce_ms = debounce_ms
        self.restart_hazard = restart_hazard
        self.log = log or logger

        self._state = WatcherState.IDLE
        self._session: Optional[WatcherSession] = None
        self._last_head: Optional[str] = None
        self._detached = False
        self._repo_root_id: Optional[str] = None
        self._queue = SerialTaskQueue("head-watcher")
        self._directory_trigger = debounce_trailing(debounce_ms, self._on_directory_debounced)
        self._setup_done = False
        self._closed = False

        # Statistics
        self.events_received = 0
        self.checks_run = 0
        self.notifications_emitted = 0

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def state(self) -> WatcherState:
        return self._state

    @property
    def head(self) -> Optional[str]:
        """Last normalized head that was notified, None outside a repository."""
        return self._last_head

    @property
    def detached(self) -> bool:
        return self._detached

    @property
    def repo_root_id(self) -> Optional[str]:
        return self._repo_root_id

    @property
    def session(self) -> Optional[WatcherSession]:
        return self._session

    @property
    def watched_path(self) -> Optional[str]:
        return self._session.watched_path if self._session else None

    def status(self) -> WatcherStatus:
        return WatcherStatus(
            state=self._state,
            directory=self._session.owner_directory if self._session else None,
            watched_path=self.watched_path,
            head=self._last_head,
            detached=self._detached,
            events_received=self.events_received,
            checks_run=self.checks_run,
            notifications_emitted=self.notifications_emitted,
        )

    # ------------------------------------------------------------------
    # Inbound triggers
    # ------------------------------------------------------------------

    def setup(self, directory: Optional[Union[str, Path]] = None) -> None:
        """
        Schedule the initial bootstrap. Only the first call has an effect.

        Args:
            directory: Directory to track (default: the current working directory)
        """
        if self._setup_done:
            return
        self._setup_done = True
        self.on_directory_changed(directory)

    def on_directory_changed(self, directory: Optional[Union[str, Path]] = None) -> None:
        """
        Debounced bootstrap for a new working directory.

        Args:
            directory: New directory (default: resolved from os.getcwd() when the debounce fires)
        """
        if self._closed:
            return
        self._directory_trigger(str(directory) if directory is not None else None)

    async def bootstrap(self, directory: Union[str, Path]) -> Optional[RepoState]:
        """
        Inspect a directory and (re)arm the watch on its head reference file.

        Runs behind any bootstrap or re-check already queued.

        Returns:
            The RepoState found, or None outside a repository
        """
        return await self._queue.submit(self._bootstrap, str(directory))

    async def join(self) -> None:
        """Wait for queued bootstraps and re-checks to finish."""
        await self._queue.join()

    async def aclose(self) -> None:
        """Stop watching and release the queue."""
        if self._closed:
            return
        self._closed = True
        self._directory_trigger.cancel()
        self._stop_session()
        await self._queue.close()
        self._state = WatcherState.IDLE

    async def __aenter__(self) -> "HeadWatcher":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    async def _on_directory_debounced(self, directory: Optional[str]) -> None:
        if self._closed:
            return
        if directory is None:
            try:
                directory = os.getcwd()
            except OSError as e:
                self.log.debug(f"Could not get current working directory: {e}")
                return
        await self.bootstrap(directory)

    async def _bootstrap(self, directory: str) -> Optional[RepoState]:
        self._state = WatcherState.TRANSITIONING
        try:
            repo = await self._inspect(directory)
            if repo is None:
                self.log.debug(f"No repository found for {directory}")
                self._clear()
                return None

            # The initial notification always reports old_head=None
            self._emit_head_changed(repo, old_head=None, init=True)
            self._remember(repo)
            self.bus.emit_update()

            towatch = str(self.inspector.head_reference_path(repo))
            if not os.path.exists(towatch):
                self.log.debug(f"Cannot watch {towatch}, file does not exist (likely initial commit needed).")
                if self._session is not None:
                    self._stop_session()
                    self.log.debug("Stopped head watcher as head reference file is missing.")
                return repo

            await self._arm(towatch, directory)
            return repo
        finally:
            self._settle_state()

    def _clear(self) -> None:
        had_head = self._last_head is not None
        self._last_head = None
        self._detached = False
        self._repo_root_id = None
        if had_head:
            self.bus.emit_update()
        self._stop_session()

    # ------------------------------------------------------------------
    # Watch session
    # ------------------------------------------------------------------

    async def _arm(self, path: str, directory: str) -> None:
        session = self._session
        if (
            session is not None
            and session.watched_path == path
            and self.handle.is_active
            and self.handle.path == path
        ):
            # Already watching
            session.owner_directory = directory
            return

        if self.handle.is_active:
            self.handle.stop()
            if self.restart_hazard:
                await asyncio.sleep(0)
        if session is not None:
            session.trigger.cancel()
            self._session = None

        trigger = debounce_trailing(self.debounce_ms, self._on_head_debounced)
        new_session = WatcherSession(
            watched_path=path,
            handle=self.handle,
            owner_directory=directory,
            trigger=trigger,
        )
        try:
            self.handle.start(path, functools.partial(self._on_watch_event, new_session))
        except WatchError as e:
            self.log.warning(f"{e}; head changes will not be tracked until the next directory change")
            return

        self._session = new_session
        self.log.debug(f"Head watcher armed on {path} for {directory}")

    def _stop_session(self) -> None:
        session = self._session
        self._session = None
        if session is not None:
            session.trigger.cancel()
        if self.handle.is_active:
            self.handle.stop()
            self.log.debug("Stopped head watcher.")

    def _on_watch_event(self, session: WatcherSession, event: WatchEvent) -> None:
        if self._closed or session is not self._session:
            return
        self.events_received += 1
        self.log.debug(f"Head reference update detected: '{event.filename}' {event.kind}")
        session.trigger(session)

    # ------------------------------------------------------------------
    # Re-check
    # ------------------------------------------------------------------

    async def _on_head_debounced(self, session: WatcherSession) -> None:
        if self._closed:
            return
        await self._queue.submit(self._check_head, session)

    async def _check_head(self, session: WatcherSession) -> None:
        if session is not self._session:
            self.log.debug(f"Skipping re-check for superseded watch on {session.watched_path}")
            return

        self.checks_run += 1
        self._state = WatcherState.TRANSITIONING
        try:
            repo = await self._inspect(session.owner_directory)
            if session is not self._session:
                return
            if repo is None:
                # Transient failure, keep the watch as it is
                self.log.debug("Could not determine repository for head watcher.")
                return

            old_head = self._last_head
            if repo.normalized_head != old_head:
                self.log.debug(
                    f'Head changed from "{old_head}" to "{repo.normalized_head}" in {repo.repo_root_id}'
                )
                self._emit_head_changed(repo, old_head=old_head, init=False)
                self.bus.emit_update()
                self._remember(repo)
            else:
                self.log.debug(f"Head unchanged: {repo.normalized_head}")

            if os.path.exists(session.watched_path):
                await self._arm(session.watched_path, session.owner_directory)
            else:
                self.log.debug(f"Watched path {session.watched_path} no longer exists, stopping watcher.")
                self._stop_session()
        finally:
            self._settle_state()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _inspect(self, directory: str) -> Optional[RepoState]:
        try:
            return await self.inspector.inspect(directory)
        except Exception as e:
            self.log.warning(f"Repository inspection failed for {directory}: {e}")
            return None

    def _remember(self, repo: RepoState) -> None:
        self._last_head = repo.normalized_head
        self._detached = repo.detached
        self._repo_root_id = repo.repo_root_id

    def _emit_head_changed(self, repo: RepoState, old_head: Optional[str], init: bool) -> None:
        self.notifications_emitted += 1
        self.bus.emit_head_changed(
            HeadChangedEvent(
                repo_root_id=repo.repo_root_id,
                head=repo.normalized_head,
                old_head=old_head,
                detached=repo.detached,
                init=init,
            )
        )

    def _settle_state(self) -> None:
        if self._session is not None and self.handle.is_active:
            self._state = WatcherState.ARMED
        else:
            self._state = WatcherState.IDLE
