"""
Repository inspection: which repository owns a directory and what its head is.
"""

import asyncio
import shutil
import subprocess
from pathlib import Path
from typing import Optional, Protocol, Union

from loguru import logger

from ..exceptions import InspectionError
from ..schemas import RepoState
from .discovery import find_repository_marker, resolve_git_dir


class RepositoryInspector(Protocol):
    """Boundary contract used by the head watcher."""

    async def inspect(self, directory: Union[str, Path]) -> Optional[RepoState]:
        """Return the directory's repository state, or None outside a repository."""
        ...

    def head_reference_path(self, state: RepoState) -> Path:
        """Return the file whose rewrites signal a head change."""
        ...


class GitInspector:
    """
    RepositoryInspector backed by the git CLI.

    git runs in a worker thread; the event loop is yielded to before and
    after every query so queued callbacks are not starved.
    """

    def __init__(
        self,
        git_executable: str = "git",
        timeout: float = 5.0,
        head_file: str = "HEAD",
        marker_name: str = ".git",
    ):
        """
        Initialize the inspector.

        Args:
            git_executable: Name or path of the git binary
            timeout: Seconds before a single git call is abandoned
            head_file: Head reference file name inside the git dir
            marker_name: Repository marker looked up before running git
        """
        self.git_executable = git_executable
        self.timeout = timeout
        self.head_file = head_file
        self.marker_name = marker_name

    def available(self) -> bool:
        """Check that the git executable can be found."""
        return shutil.which(self.git_executable) is not None

    async def inspect(self, directory: Union[str, Path]) -> Optional[RepoState]:
        """
        Inspect a directory.

        Args:
            directory: Directory to inspect

        Returns:
            RepoState, or None when the directory is not inside a repository
            or the query failed
        """
        await asyncio.sleep(0)
        marker = find_repository_marker(Path(directory), self.marker_name)
        if marker is None:
            logger.debug(f"No {self.marker_name} found upwards from {directory}")
            return None
        if resolve_git_dir(marker) is None:
            logger.debug(f"{marker} does not point at a git dir")
            return None

        try:
            state = await asyncio.to_thread(self.query, Path(directory))
        except InspectionError as e:
            logger.debug(str(e))
            state = None
        await asyncio.sleep(0)
        return state

    def head_reference_path(self, state: RepoState) -> Path:
        return Path(state.repo_root_id) / self.head_file

    def query(self, directory: Path) -> RepoState:
        """
        Blocking repository query.

        Raises:
            InspectionError: If the directory is not in a repository or git fails
        """
        try:
            output = self._run_git(directory, "rev-parse", "--absolute-git-dir", "--abbrev-ref", "HEAD")
        except InspectionError:
            # No commits yet: HEAD cannot be resolved but the git dir can
            return self._query_unborn(directory)

        lines = output.splitlines()
        if len(lines) < 2 or not lines[0] or not lines[1]:
            raise InspectionError(str(directory), f"incomplete rev-parse output: {output!r}")

        git_dir, raw_head = lines[0].strip(), lines[1].strip()
        state = RepoState(repo_root_id=git_dir, normalized_head=raw_head, raw_head_ref=raw_head)
        if state.detached:
            short = self._run_git(directory, "rev-parse", "--short", "HEAD").strip()
            state = RepoState(repo_root_id=git_dir, normalized_head=short or None, raw_head_ref=raw_head)
        return state

    def _query_unborn(self, directory: Path) -> RepoState:
        git_dir = self._run_git(directory, "rev-parse", "--absolute-git-dir").strip()
        if not git_dir:
            raise InspectionError(str(directory), "empty git dir")

        try:
            branch = self._run_git(directory, "symbolic-ref", "--short", "-q", "HEAD").strip() or None
        except InspectionError:
            branch = None

        logger.debug(f"Repository {git_dir} has no commits (branch: {branch})")
        return RepoState(repo_root_id=git_dir, normalized_head=branch, raw_head_ref=branch or "")

    def _run_git(self, directory: Path, *args: str) -> str:
        cmd = [self.git_executable, *args]
        try:
            result = subprocess.run(
                cmd,
                cwd=str(directory),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            raise InspectionError(str(directory), f"'{' '.join(cmd)}' timed out after {self.timeout}s") from None
        except OSError as e:
            raise InspectionError(str(directory), str(e)) from e

        if result.returncode != 0:
            raise InspectionError(
                str(directory),
                f"'{' '.join(cmd)}' exited with {result.returncode}: {result.stderr.strip()}",
            )
        return result.stdout
