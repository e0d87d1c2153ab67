# src/checkpoint/store.py — v1
"""Checkpoint Store: persist PipelineRun progress as a single JSON document.

The file is rewritten whole on every change (temp file + rename). On load,
a checkpoint older than the TTL, unreadable, or carrying an unknown schema
version is deleted and treated as absent.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from vibecode.core.errors import CheckpointCorrupt, CheckpointExpired
from vibecode.core.models import (
    Checkpoint,
    CheckpointError,
    CheckpointFileEntry,
    GeneratedFile,
    PipelineRun,
    Stage,
    StageError,
)
from vibecode.logging.logger import get_logger
from vibecode.storage.local_writer import atomic_write_text

SCHEMA_VERSION = "1.0"


def _to_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def _from_ms(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def to_checkpoint(run: PipelineRun, preview_chars: int = 1000) -> Checkpoint:
    """Map a PipelineRun onto the on-disk wire model."""
    return Checkpoint(
        in_progress=run.in_progress,
        run_id=run.id,
        task=run.task,
        current_stage=run.stage,
        failed_stage=run.failed_stage,
        files_generated=[
            CheckpointFileEntry(
                path=f.path,
                timestamp=_to_ms(f.discovered_at),
                content_preview=f.content_preview[:preview_chars] or None,
            )
            for f in run.generated_files
        ],
        files_saved=list(run.saved_files),
        response_parsed=run.response_parsed,
        backup_name=run.backup_name,
        last_error=(
            CheckpointError(
                message=run.last_error.message,
                stage=run.last_error.stage,
                at=_to_ms(run.last_error.at),
            )
            if run.last_error
            else None
        ),
        started_at=_to_ms(run.started_at),
        version=SCHEMA_VERSION,
    )


def from_checkpoint(checkpoint: Checkpoint) -> PipelineRun:
    """Rehydrate a PipelineRun from the wire model."""
    return PipelineRun(
        id=checkpoint.run_id or PipelineRun().id,
        task=checkpoint.task,
        stage=checkpoint.current_stage,
        in_progress=checkpoint.in_progress,
        started_at=_from_ms(checkpoint.started_at or checkpoint.timestamp),
        generated_files=[
            GeneratedFile(
                path=e.path,
                content_preview=e.content_preview or "",
                discovered_at=_from_ms(e.timestamp),
            )
            for e in checkpoint.files_generated
        ],
        saved_files=list(dict.fromkeys(checkpoint.files_saved)),
        last_error=(
            StageError(
                message=checkpoint.last_error.message,
                stage=checkpoint.last_error.stage,
                at=_from_ms(checkpoint.last_error.at),
            )
            if checkpoint.last_error
            else None
        ),
        failed_stage=checkpoint.failed_stage,
        response_parsed=checkpoint.response_parsed,
        backup_name=checkpoint.backup_name,
    )


class CheckpointStore:
    """Durable record of one project's in-flight run."""

    def __init__(
        self,
        path: Path,
        ttl_hours: float = 24.0,
        preview_chars: int = 1000,
        logger: logging.Logger | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._path = Path(path)
        self._ttl_hours = ttl_hours
        self._preview_chars = preview_chars
        self._logger = logger or get_logger("checkpoint")
        self._clock = clock

    @property
    def path(self) -> Path:
        return self._path

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    async def save(self, run: PipelineRun) -> None:
        """Write the full run state atomically."""
        checkpoint = to_checkpoint(run, self._preview_chars)
        checkpoint.timestamp = self._now_ms()
        payload = checkpoint.model_dump(by_alias=True, mode="json")
        atomic_write_text(self._path, json.dumps(payload, ensure_ascii=False, indent=2))
        self._logger.debug(
            "Checkpoint saved (stage=%s, generated=%d, saved=%d)",
            run.stage,
            len(run.generated_files),
            len(run.saved_files),
        )

    async def load(self) -> PipelineRun | None:
        """Return the persisted run, or None if absent, expired or corrupt."""
        try:
            checkpoint = self._read()
        except CheckpointExpired as exc:
            self._logger.warning("Discarding expired checkpoint: %s", exc)
            await self.clear()
            return None
        except CheckpointCorrupt as exc:
            self._logger.warning("Discarding corrupt checkpoint: %s", exc)
            await self.clear()
            return None
        if checkpoint is None:
            return None
        self._logger.info(
            "Checkpoint loaded (stage=%s, generated=%d)",
            checkpoint.current_stage,
            len(checkpoint.files_generated),
        )
        return from_checkpoint(checkpoint)

    async def clear(self) -> None:
        try:
            self._path.unlink()
        except FileNotFoundError:
            return
        self._logger.info("Checkpoint cleared")

    async def update_stage(self, stage: Stage) -> PipelineRun:
        run = await self._current()
        run.stage = stage
        await self.save(run)
        return run

    async def append_generated(self, path: str, preview: str = "") -> PipelineRun:
        """Record a generated file; a path already recorded is left as is."""
        run = await self._current()
        if path not in run.generated_paths():
            run.generated_files.append(
                GeneratedFile(path=path, content_preview=preview[: self._preview_chars])
            )
            await self.save(run)
        return run

    async def mark_saved(self, path: str) -> PipelineRun:
        run = await self._current()
        if path not in run.saved_files:
            run.saved_files.append(path)
            await self.save(run)
        return run

    async def unsaved_files(self) -> list[str]:
        run = await self.load()
        return run.unsaved_paths() if run else []

    async def _current(self) -> PipelineRun:
        return await self.load() or PipelineRun()

    def _read(self) -> Checkpoint | None:
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            checkpoint = Checkpoint.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise CheckpointCorrupt(f"{self._path}: {exc}") from exc
        if checkpoint.version != SCHEMA_VERSION:
            raise CheckpointCorrupt(
                f"{self._path}: unsupported schema version {checkpoint.version!r}"
            )
        age_hours = (self._now_ms() - checkpoint.timestamp) / 3_600_000
        if age_hours > self._ttl_hours:
            raise CheckpointExpired(age_hours, self._ttl_hours)
        return checkpoint
