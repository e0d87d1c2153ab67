# tests/unit/storage/test_unit_layout.py — v2
"""Tests for storage/layout.py — project path functions."""

from __future__ import annotations

from pathlib import Path

from vibecode.storage.layout import (
    EXCLUDED_DIRS,
    checkpoint_path,
    debug_artifact_path,
    ensure_project_directories,
    lock_path,
    resolve_within,
    response_artifact_path,
    target_dir,
)


class TestLayout:
    def test_checkpoint_path(self):
        assert checkpoint_path(Path("/proj")) == Path("/proj/cache/selfbuild-state.json")

    def test_response_artifact_next_to_checkpoint(self):
        p = response_artifact_path(Path("/proj"))
        assert p.parent == checkpoint_path(Path("/proj")).parent
        assert p.name == "last-response.txt"

    def test_lock_path_custom_cache(self):
        assert lock_path(Path("/proj"), "state") == Path("/proj/state/pipeline.lock")

    def test_debug_artifact(self):
        assert debug_artifact_path(Path("/proj")) == Path("/proj/debug-response.txt")

    def test_target_dir(self):
        assert target_dir(Path("/proj"), "app") == Path("/proj/app")

    def test_excluded_dirs(self):
        for name in ("node_modules", ".git", "backups", "logs", "cache"):
            assert name in EXCLUDED_DIRS

    def test_ensure_project_directories(self, tmp_path):
        ensure_project_directories(tmp_path)
        assert (tmp_path / "cache").is_dir()


class TestResolveWithin:
    def test_inside(self, tmp_path):
        assert resolve_within(tmp_path, "a/b.js") == (tmp_path / "a" / "b.js").resolve()

    def test_escape_rejected(self, tmp_path):
        assert resolve_within(tmp_path / "src", "../outside.js") is None

    def test_absolute_rejected(self, tmp_path):
        assert resolve_within(tmp_path / "src", "/etc/passwd.txt") is None

    def test_base_itself_rejected(self, tmp_path):
        assert resolve_within(tmp_path, ".") is None
