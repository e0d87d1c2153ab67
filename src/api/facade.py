# src/api/facade.py — v2
"""Public API facade: build the pipeline from Settings and run it.

Usage:
    from vibecode.api.facade import generate
    result = await generate("Create a todo web app", settings)

The CLI is a thin layer over these functions.
"""

from __future__ import annotations

import logging
from pathlib import Path

from vibecode.backup.manager import BackupManager
from vibecode.checkpoint.run_lock import RunLock
from vibecode.checkpoint.store import CheckpointStore
from vibecode.config.settings import Settings
from vibecode.core.models import BackupSnapshot, PipelineRun, RunResult
from vibecode.documents.loader import DocumentContextLoader
from vibecode.llm.gateway import ModelGateway
from vibecode.parser.response_parser import ResponseParser, default_strategies
from vibecode.pipeline.orchestrator import PipelineOrchestrator
from vibecode.pipeline.prompt_builder import PromptBuilder
from vibecode.storage import layout

logger = logging.getLogger(__name__)


def build_orchestrator(
    settings: Settings | None = None,
    gateway: ModelGateway | None = None,
) -> PipelineOrchestrator:
    """Wire every pipeline component for ``settings.project_root``.

    Args:
        settings: Global settings. Loaded from .env if None.
        gateway: Model gateway. Built from settings if None.
    """
    settings = settings or Settings()
    root = Path(settings.project_root)

    parser = ResponseParser(
        strategies=default_strategies(
            html_min_chars=settings.parser_html_min_chars,
            css_min_chars=settings.parser_css_min_chars,
            script_min_chars=settings.parser_script_min_chars,
        ),
        min_content_chars=settings.parser_min_content_chars,
        root_segment=settings.target_dir,
    )
    prompt_builder = PromptBuilder(
        target_dir=settings.target_dir,
        rules_file=_within_project(root, settings.rules_file),
        template_file=_within_project(root, settings.template_file),
    )
    return PipelineOrchestrator(
        settings=settings,
        gateway=gateway or ModelGateway(settings),
        loader=DocumentContextLoader(
            root,
            candidates=settings.document_candidates,
            min_length=settings.document_min_length,
        ),
        parser=parser,
        checkpoints=checkpoint_store(settings),
        backups=backup_manager(settings),
        prompt_builder=prompt_builder,
        run_lock=RunLock(
            layout.lock_path(root, settings.cache_dir),
            stale_after_seconds=settings.checkpoint_ttl_hours * 3600,
        ),
    )


def checkpoint_store(settings: Settings) -> CheckpointStore:
    root = Path(settings.project_root)
    return CheckpointStore(
        layout.checkpoint_path(root, settings.cache_dir),
        ttl_hours=settings.checkpoint_ttl_hours,
        preview_chars=settings.checkpoint_preview_chars,
    )


def backup_manager(settings: Settings) -> BackupManager:
    root = Path(settings.project_root)
    return BackupManager(
        layout.backups_dir(root, settings.backup_dir),
        known_good_prefix=settings.backup_known_good_prefix,
        default_source=layout.target_dir(root, settings.target_dir),
    )


# --- Runs ---


async def generate(
    task: str,
    settings: Settings | None = None,
    force_new: bool = False,
    gateway: ModelGateway | None = None,
) -> RunResult:
    """Generate files for ``task``, resuming a pending run of the same task."""
    settings = settings or Settings()
    orchestrator = build_orchestrator(settings, gateway)
    logger.info("Generating for project %s", settings.project_root)
    return await orchestrator.run(task, force_new=force_new)


async def resume(
    settings: Settings | None = None,
    gateway: ModelGateway | None = None,
) -> RunResult | None:
    """Resume the pending run, if any. Returns None when nothing is pending."""
    settings = settings or Settings()
    pending = await checkpoint_store(settings).load()
    if pending is None or not pending.in_progress:
        logger.info("No pending run to resume in %s", settings.project_root)
        return None
    return await build_orchestrator(settings, gateway).run(None)


# --- Backups ---


async def restore(name: str | None = None, settings: Settings | None = None) -> bool:
    """Restore a snapshot (named, else newest known-good) into the target dir."""
    settings = settings or Settings()
    return await backup_manager(settings).restore(name)


def list_backups(settings: Settings | None = None) -> list[BackupSnapshot]:
    settings = settings or Settings()
    return backup_manager(settings).list_snapshots()


async def clean_backups(days: int | None = None, settings: Settings | None = None) -> int:
    """Delete snapshots older than ``days`` (default: configured retention)."""
    settings = settings or Settings()
    if days is None:
        days = settings.backup_retention_days
    return await backup_manager(settings).clean_old(days)


# --- Checkpoint ---


async def show_checkpoint(settings: Settings | None = None) -> PipelineRun | None:
    settings = settings or Settings()
    return await checkpoint_store(settings).load()


async def clear_checkpoint(settings: Settings | None = None) -> None:
    settings = settings or Settings()
    root = Path(settings.project_root)
    await checkpoint_store(settings).clear()
    layout.response_artifact_path(root, settings.cache_dir).unlink(missing_ok=True)


def _within_project(root: Path, path: Path | None) -> Path | None:
    if path is None or path.is_absolute():
        return path
    return root / path
