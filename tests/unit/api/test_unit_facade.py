# tests/unit/api/test_unit_facade.py — v2
"""Tests for api/facade.py — wiring from Settings and the public functions."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from vibecode.api.facade import (
    backup_manager,
    build_orchestrator,
    checkpoint_store,
    clean_backups,
    clear_checkpoint,
    generate,
    list_backups,
    restore,
    resume,
    show_checkpoint,
)
from vibecode.core.models import PipelineRun


class TestBuild:
    def test_paths_follow_settings(self, settings, mock_gateway, project):
        settings.target_dir = "app"
        orchestrator = build_orchestrator(settings, mock_gateway)
        assert orchestrator.target_dir == project / "app"
        assert checkpoint_store(settings).path == project / "cache" / "selfbuild-state.json"
        assert backup_manager(settings).backup_dir == project / "backups"


class TestRuns:
    @pytest.mark.asyncio
    async def test_generate(self, settings, mock_gateway, project):
        result = await generate("Create a todo web app", settings, gateway=mock_gateway)
        assert result.success
        assert (project / "src" / "app.js").exists()

    @pytest.mark.asyncio
    async def test_resume_without_checkpoint(self, settings, mock_gateway):
        assert await resume(settings, gateway=mock_gateway) is None
        mock_gateway.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_resume_pending(self, settings, mock_gateway):
        pending = PipelineRun(task="Create a todo web app", stage="ai_request")
        await checkpoint_store(settings).save(pending)

        result = await resume(settings, gateway=mock_gateway)
        assert result.run_id == pending.id
        assert result.resumed is True


class TestBackups:
    @pytest.mark.asyncio
    async def test_restore_named_snapshot(self, settings, project):
        src = project / "src"
        src.mkdir()
        (src / "app.js").write_text("v1", encoding="utf-8")
        snap = await backup_manager(settings).snapshot(src, label="working-version")
        (src / "app.js").write_text("v2", encoding="utf-8")

        assert [s.name for s in list_backups(settings)] == [snap.name]
        assert await restore(snap.name, settings) is True
        assert (src / "app.js").read_text(encoding="utf-8") == "v1"

    @pytest.mark.asyncio
    async def test_restore_nothing(self, settings):
        assert await restore(None, settings) is False

    @pytest.mark.asyncio
    async def test_clean_uses_retention(self, settings, project):
        src = project / "src"
        src.mkdir()
        (src / "app.js").write_text("v1", encoding="utf-8")
        manager = backup_manager(settings)
        old = await manager.snapshot(src, label="old")
        manifest_path = old.path / "snapshot.json"
        manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
        manifest["created_at"] = (datetime.now(timezone.utc) - timedelta(days=30)).isoformat()
        manifest_path.write_text(json.dumps(manifest), encoding="utf-8")
        await manager.snapshot(src, label="new")

        assert await clean_backups(settings=settings) == 1
        assert [s.name.split("-")[0] for s in list_backups(settings)] == ["new"]


class TestCheckpoint:
    @pytest.mark.asyncio
    async def test_show_and_clear(self, settings, project):
        await checkpoint_store(settings).save(PipelineRun(task="t", stage="parsing_files"))
        artifact = project / "cache" / "last-response.txt"
        artifact.write_text("reply", encoding="utf-8")

        run = await show_checkpoint(settings)
        assert run.stage == "parsing_files"

        await clear_checkpoint(settings)
        assert await show_checkpoint(settings) is None
        assert not artifact.exists()
