"""Tests for the watcher facade."""

import asyncio

import pytest

pytestmark = pytest.mark.fast

from headwatch.exceptions import GitNotFoundError
from headwatch.repository.inspector import GitInspector
from headwatch.schemas import RepoState
from headwatch.watcher.facade import create_head_watcher, create_inspector, inspect_directory, run_head_watcher
from headwatch.watcher.watch_handle import WatchdogHandle

from .conftest import make_git_dir


class TestCreateHeadWatcher:
    """Tests for create_head_watcher and create_inspector."""

    def test_overrides(self, fake_inspector, fake_handle):
        watcher = create_head_watcher(
            inspector=fake_inspector,
            handle=fake_handle,
            debounce_ms=20,
            restart_hazard=True,
        )

        assert watcher.inspector is fake_inspector
        assert watcher.handle is fake_handle
        assert watcher.debounce_ms == 20
        assert watcher.restart_hazard is True

    def test_default_handle_is_watchdog(self, fake_inspector):
        watcher = create_head_watcher(inspector=fake_inspector)

        assert isinstance(watcher.handle, WatchdogHandle)

    def test_missing_git_aborts(self, monkeypatch):
        monkeypatch.setenv("HEADWATCH_GIT_EXECUTABLE", "definitely-not-git-4242")

        with pytest.raises(GitNotFoundError):
            create_head_watcher()

    def test_inspector_from_config(self):
        inspector = create_inspector({
            "git_executable": "git2",
            "git_timeout": 2.0,
            "head_file": "HEAD",
            "marker_name": ".git",
        })

        assert isinstance(inspector, GitInspector)
        assert inspector.git_executable == "git2"
        assert inspector.timeout == 2.0


class TestRunHeadWatcher:
    """Tests for run_head_watcher and inspect_directory."""

    @pytest.mark.asyncio
    async def test_runs_until_stopped(self, fake_inspector, fake_handle, temp_dir):
        git_dir = make_git_dir(temp_dir)
        fake_inspector.set(git_dir.parent, RepoState(
            repo_root_id=str(git_dir), normalized_head="main", raw_head_ref="main",
        ))
        watcher = create_head_watcher(inspector=fake_inspector, handle=fake_handle)
        stop = asyncio.Event()
        heads, updates = [], []

        def on_head_changed(event):
            heads.append(event)
            stop.set()

        watcher = await asyncio.wait_for(
            run_head_watcher(
                git_dir.parent,
                on_head_changed=on_head_changed,
                on_update=lambda: updates.append(1),
                stop_event=stop,
                watcher=watcher,
            ),
            timeout=5,
        )

        assert [e.head for e in heads] == ["main"]
        assert heads[0].init is True
        assert fake_handle.is_active is False

    @pytest.mark.asyncio
    async def test_inspect_directory(self, fake_inspector, temp_dir):
        state = RepoState(repo_root_id="/r/.git", normalized_head="main", raw_head_ref="main")
        fake_inspector.set(temp_dir, state)

        assert await inspect_directory(temp_dir, inspector=fake_inspector) == state
        assert await inspect_directory(temp_dir / "nope", inspector=fake_inspector) is None
