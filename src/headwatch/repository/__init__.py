"""
Repository inspection: finding the repository that owns a directory and reading its head.
"""

from .discovery import find_repository_marker, resolve_git_dir
from .inspector import GitInspector, RepositoryInspector

__all__ = [
    "find_repository_marker",
    "resolve_git_dir",
    "GitInspector",
    "RepositoryInspector",
]
