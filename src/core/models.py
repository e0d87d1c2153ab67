# src/core/models.py — v2
"""Shared Pydantic domain models used across modules.

Components import these types from here rather than redefining them.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

# === STAGES ===

Stage = Literal[
    "initialization",
    "reading_documents",
    "classification",
    "prompt_generation",
    "ai_request",
    "parsing_files",
    "saving_files",
    "completed",
    "error",
]

# Forward order of a clean run; "error" sits outside it.
STAGE_ORDER: tuple[str, ...] = (
    "initialization",
    "reading_documents",
    "classification",
    "prompt_generation",
    "ai_request",
    "parsing_files",
    "saving_files",
    "completed",
)


def stage_index(stage: str) -> int:
    """Position of a stage in the forward order (-1 for "error")."""
    try:
        return STAGE_ORDER.index(stage)
    except ValueError:
        return -1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# === PARSER ===

StrategyName = Literal["explicit_header", "mentioned_path", "default_language", "bare_mention"]


class FileUnit(BaseModel):
    """One extracted (path, content) pair destined for the working tree."""

    raw_path: str
    normalized_path: str
    content: str
    strategy: StrategyName
    block_index: int | None = None


# === PIPELINE RUN ===


class GeneratedFile(BaseModel):
    """Ledger entry for a file discovered in a model response."""

    path: str
    content_preview: str = ""
    discovered_at: datetime = Field(default_factory=_utcnow)


class StageError(BaseModel):
    """Failure recorded against the stage that raised it."""

    message: str
    stage: Stage
    at: datetime = Field(default_factory=_utcnow)


class PipelineRun(BaseModel):
    """Mutable state of one generation run, persisted through the checkpoint."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    task: str = ""
    stage: Stage = "initialization"
    in_progress: bool = True
    started_at: datetime = Field(default_factory=_utcnow)
    completed_at: datetime | None = None
    generated_files: list[GeneratedFile] = Field(default_factory=list)
    saved_files: list[str] = Field(default_factory=list)
    last_error: StageError | None = None
    failed_stage: Stage | None = None
    response_parsed: bool = False
    backup_name: str | None = None

    def generated_paths(self) -> list[str]:
        return [f.path for f in self.generated_files]

    def unsaved_paths(self) -> list[str]:
        saved = set(self.saved_files)
        return [p for p in self.generated_paths() if p not in saved]


# === CHECKPOINT (wire format) ===


class CheckpointFileEntry(BaseModel):
    """filesGenerated[] element as stored on disk."""

    model_config = {"populate_by_name": True}

    path: str
    timestamp: int
    content_preview: str | None = Field(default=None, alias="contentPreview")


class CheckpointError(BaseModel):
    model_config = {"populate_by_name": True}

    message: str
    stage: Stage
    at: int


class Checkpoint(BaseModel):
    """Serialized PipelineRun plus timestamp and schema version."""

    model_config = {"populate_by_name": True}

    in_progress: bool = Field(default=True, alias="inProgress")
    run_id: str = Field(default="", alias="runId")
    task: str = ""
    current_stage: Stage = Field(default="initialization", alias="currentStage")
    failed_stage: Stage | None = Field(default=None, alias="failedStage")
    files_generated: list[CheckpointFileEntry] = Field(
        default_factory=list, alias="filesGenerated"
    )
    files_saved: list[str] = Field(default_factory=list, alias="filesSaved")
    response_parsed: bool = Field(default=False, alias="responseParsed")
    backup_name: str | None = Field(default=None, alias="backupName")
    last_error: CheckpointError | None = Field(default=None, alias="lastError")
    started_at: int = Field(default=0, alias="startedAt")
    timestamp: int = 0
    version: str = "1.0"


# === BACKUPS ===


class BackupSnapshot(BaseModel):
    """Point-in-time copy of a file or directory used for rollback."""

    name: str
    path: Path
    source_path: Path
    kind: Literal["file", "directory"]
    files: list[Path] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)


# === CLASSIFICATION ===


class TaskClassification(BaseModel):
    """Outcome of the classification stage."""

    task_type: Literal["code", "explanation", "analysis", "reasoning", "translation"]
    project_type: Literal["app", "website", "script"] | None = None
    provider: str
    model: str
    source: str = "default"  # "task" or "default"
    language: Literal["en", "ru"] = "en"


# === RESULT ===


class FileWriteFailure(BaseModel):
    path: str
    error: str


class RunResult(BaseModel):
    """What a pipeline invocation reports back to its caller."""

    run_id: str
    stage: Stage
    resumed: bool = False
    files_generated: int = 0
    files_saved: list[str] = Field(default_factory=list)
    skipped_files: list[str] = Field(default_factory=list)
    failed_files: list[FileWriteFailure] = Field(default_factory=list)
    debug_artifact: Path | None = None
    backup_name: str | None = None
    duration_ms: int = 0

    @property
    def success(self) -> bool:
        return self.stage == "completed" and not self.failed_files
