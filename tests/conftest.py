"""
Pytest configuration for the headwatch test suite.

This conftest.py provides:
- Machine-mode logging (suppresses console output)
- Temp directories and throwaway git repositories
- Fake inspector / watch handle doubles for driving the head watcher
- A recorder for bus notifications
"""

import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from headwatch.logging_config import setup_logging
from headwatch.schemas import HeadChangedEvent, RepoState, WatchEvent
from headwatch.watcher.notifications import HEAD_CHANGED, UPDATE, NotificationBus


# ============================================================================
# GLOBAL CONFIGURATION
# ============================================================================

def pytest_configure(config):
    """Configure pytest for quiet operation."""
    os.environ.setdefault("HEADWATCH_MACHINE_MODE", "1")


# ============================================================================
# LOGGING FIXTURES
# ============================================================================

@pytest.fixture(autouse=True)
def setup_test_logging():
    """
    Machine mode by default - suppress console logs for clean test output.
    """
    setup_logging(level="DEBUG", suppress_console=True, enable_file_logging=False, force=True)


# ============================================================================
# TEMPORARY DIRECTORY FIXTURES
# ============================================================================

@pytest.fixture
def temp_dir():
    """Create a temporary directory that's cleaned up after the test."""
    tmp = Path(tempfile.mkdtemp(prefix="headwatch_test_"))
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


def run_git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        check=True,
        env={
            **os.environ,
            "GIT_AUTHOR_NAME": "Test",
            "GIT_AUTHOR_EMAIL": "test@example.com",
            "GIT_COMMITTER_NAME": "Test",
            "GIT_COMMITTER_EMAIL": "test@example.com",
        },
    )
    return result.stdout.strip()


@pytest.fixture
def empty_repo(temp_dir):
    """
    Create a git repository with no commits on branch 'main'.

    Returns:
        Path to the repository work tree
    """
    repo = temp_dir / "repo"
    repo.mkdir()
    run_git(repo, "init", "-q")
    run_git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    yield repo


@pytest.fixture
def git_repo(empty_repo):
    """
    Create a git repository on branch 'main' with one commit.

    Returns:
        Path to the repository work tree
    """
    (empty_repo / "README.md").write_text("hello\n")
    run_git(empty_repo, "add", "README.md")
    run_git(empty_repo, "commit", "-q", "-m", "initial")
    yield empty_repo


# ============================================================================
# TEST DOUBLES
# ============================================================================

class FakeInspector:
    """
    In-memory RepositoryInspector.

    Results are looked up by directory; directories without an entry are
    outside any repository. Setting `fail` makes inspect raise.
    """

    def __init__(self, results: Optional[Dict[str, Optional[RepoState]]] = None):
        self.results: Dict[str, Optional[RepoState]] = dict(results or {})
        self.calls: List[str] = []
        self.fail = False

    def set(self, directory, state: Optional[RepoState]):
        self.results[str(directory)] = state

    async def inspect(self, directory) -> Optional[RepoState]:
        self.calls.append(str(directory))
        if self.fail:
            raise RuntimeError("inspection exploded")
        return self.results.get(str(directory))

    def head_reference_path(self, state: RepoState) -> Path:
        return Path(state.repo_root_id) / "HEAD"


class FakeWatchHandle:
    """WatchHandle that records calls and lets tests fire events."""

    def __init__(self):
        self._path: Optional[str] = None
        self._active = False
        self._on_event = None
        self.starts: List[str] = []
        self.stops = 0

    @property
    def path(self) -> Optional[str]:
        return self._path

    @property
    def is_active(self) -> bool:
        return self._active

    def start(self, path, on_event):
        if self._active and self._path == str(path):
            return
        if self._active:
            self.stop()
        self._path = str(path)
        self._active = True
        self._on_event = on_event
        self.starts.append(str(path))

    def stop(self):
        if self._active:
            self.stops += 1
        self._active = False
        self._on_event = None

    def fire(self, kind: str = "modified"):
        assert self._active, "watch is not active"
        self._on_event(WatchEvent(filename=Path(self._path).name, kind=kind))


class Recorder:
    """Collects notifications from a NotificationBus."""

    def __init__(self, bus: NotificationBus):
        self.head_events: List[HeadChangedEvent] = []
        self.updates = 0
        bus.subscribe(HEAD_CHANGED, self.head_events.append)
        bus.subscribe(UPDATE, self._on_update)

    def _on_update(self):
        self.updates += 1


@pytest.fixture
def fake_inspector():
    return FakeInspector()


@pytest.fixture
def fake_handle():
    return FakeWatchHandle()


def make_git_dir(root: Path, name: str = "repo") -> Path:
    """Create a directory standing in for a git dir, with a HEAD file."""
    git_dir = root / name / ".git"
    git_dir.mkdir(parents=True)
    (git_dir / "HEAD").write_text("ref: refs/heads/main\n")
    return git_dir


# ============================================================================
# SKIP CONDITIONS
# ============================================================================

requires_git = pytest.mark.skipif(
    shutil.which("git") is None,
    reason="Git not available"
)
