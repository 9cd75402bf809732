"""
Upward search for a repository marker.
"""

from pathlib import Path
from typing import Optional

from loguru import logger

GITDIR_PREFIX = "gitdir:"


def find_repository_marker(directory: Path, marker_name: str = ".git") -> Optional[Path]:
    """
    Walk upward from a directory looking for a repository marker.

    The marker is a directory in a regular checkout and a file in
    worktrees and submodules.

    Args:
        directory: Directory to start from
        marker_name: Name of the marker entry

    Returns:
        Path of the first marker found, or None
    """
    try:
        current = Path(directory).resolve()
    except OSError as e:
        logger.debug(f"Cannot resolve {directory}: {e}")
        return None

    for candidate in (current, *current.parents):
        marker = candidate / marker_name
        if marker.exists():
            return marker
    return None


def resolve_git_dir(marker: Path) -> Optional[Path]:
    """
    Resolve a marker to the git dir it stands for.

    A marker file holds a `gitdir: <path>` pointer, relative paths being
    relative to the file's directory.
    """
    if marker.is_dir():
        return marker

    try:
        content = marker.read_text().strip()
    except OSError as e:
        logger.debug(f"Cannot read {marker}: {e}")
        return None

    if not content.startswith(GITDIR_PREFIX):
        return None

    git_dir = Path(content[len(GITDIR_PREFIX):].strip())
    if not git_dir.is_absolute():
        git_dir = (marker.parent / git_dir).resolve()
    return git_dir
