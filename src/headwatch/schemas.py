from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

# Raw head reference reported by git when HEAD points at a commit, not a branch
DETACHED_RAW_HEAD = "HEAD"


class RepoState(BaseModel):
    """
    Snapshot of a repository's head, produced fresh on every inspection.
    """
    model_config = ConfigDict(frozen=True)

    repo_root_id: str  # Absolute path of the repository's git dir
    normalized_head: Optional[str] = None  # Branch name or abbreviated commit id
    raw_head_ref: str  # Unprocessed `--abbrev-ref HEAD` output

    @property
    def detached(self) -> bool:
        return self.raw_head_ref == DETACHED_RAW_HEAD


class HeadChangedEvent(BaseModel):
    """
    Payload of a HeadChanged notification.
    """
    model_config = ConfigDict(frozen=True)

    repo_root_id: str
    head: Optional[str] = None
    old_head: Optional[str] = None
    detached: bool = False
    init: bool = False


class WatchEvent(BaseModel):
    """
    A single filesystem notification for a watched path.
    """
    model_config = ConfigDict(frozen=True)

    filename: Optional[str] = None
    kind: str


class WatcherState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"
    TRANSITIONING = "transitioning"


class WatcherStatus(BaseModel):
    """
    Status of a head watcher.
    """
    state: WatcherState
    directory: Optional[str] = None  # Directory of the current session
    watched_path: Optional[str] = None
    head: Optional[str] = None
    detached: bool = False
    events_received: int = 0  # Filesystem events delivered to the watcher
    checks_run: int = 0  # Debounced head re-checks executed
    notifications_emitted: int = 0  # HeadChanged notifications fired
