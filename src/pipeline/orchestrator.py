# src/pipeline/orchestrator.py — v2
"""Pipeline orchestrator: drive one generation run through its stages.

    initialization → reading_documents → classification → prompt_generation
    → ai_request → parsing_files → saving_files → completed

Every stage entry is persisted through the CheckpointStore. A failure moves
the run to ``error`` (recording the stage it failed in), rolls the working
tree back to the pre-run snapshot and re-raises. A later call with the same
task resumes from the recorded stage: document, classification and prompt
stages are cheap and always re-run, the model call is skipped when its
response was already parsed and kept on disk, and files already saved are
not written again.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from pathlib import Path

from vibecode.backup.manager import BackupManager
from vibecode.checkpoint.run_lock import RunLock
from vibecode.checkpoint.store import CheckpointStore
from vibecode.config.settings import Settings
from vibecode.core.errors import (
    BackupNotFound,
    DocumentInvalid,
    DocumentMissing,
    FileWriteError,
    ParseEmptyResult,
)
from vibecode.core.models import (
    FileUnit,
    FileWriteFailure,
    GeneratedFile,
    PipelineRun,
    RunResult,
    Stage,
    StageError,
    TaskClassification,
    stage_index,
)
from vibecode.documents.loader import DocumentContextLoader
from vibecode.llm.gateway import ModelGateway
from vibecode.llm.models import GatewayOptions
from vibecode.logging.context import clear_context, set_run_context, set_stage_context
from vibecode.logging.logger import get_logger
from vibecode.parser.response_parser import ResponseParser
from vibecode.pipeline.classifier import TaskClassifier
from vibecode.pipeline.prompt_builder import PromptBuilder
from vibecode.storage import layout
from vibecode.storage.local_writer import atomic_write_text


class PipelineOrchestrator:
    """Run the generation pipeline for one project.

    Args:
        settings: Resolved settings; ``project_root`` locates the project.
        gateway: Model gateway used for the single ai_request call.
        loader: Intent document loader.
        parser: Response parser producing FileUnits.
        checkpoints: Durable run state.
        backups: Snapshot manager used for the pre-run snapshot and rollback.
        classifier: Task classifier (built from settings if None).
        prompt_builder: Prompt builder (built from settings if None).
        run_lock: Per-project lock held while ``run`` executes. None = no lock.
        logger: Injected logger (defaults to ``vibecode.orchestrator``).
    """

    def __init__(
        self,
        settings: Settings,
        gateway: ModelGateway,
        loader: DocumentContextLoader,
        parser: ResponseParser,
        checkpoints: CheckpointStore,
        backups: BackupManager,
        classifier: TaskClassifier | None = None,
        prompt_builder: PromptBuilder | None = None,
        run_lock: RunLock | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._settings = settings
        self._gateway = gateway
        self._loader = loader
        self._parser = parser
        self._checkpoints = checkpoints
        self._backups = backups
        self._classifier = classifier or TaskClassifier(settings)
        self._prompt_builder = prompt_builder or PromptBuilder(
            target_dir=settings.target_dir,
            rules_file=settings.rules_file,
            template_file=settings.template_file,
        )
        self._run_lock = run_lock
        self._logger = logger or get_logger("orchestrator")

        root = Path(settings.project_root)
        self._root = root
        self._target = layout.target_dir(root, settings.target_dir)
        self._response_artifact = layout.response_artifact_path(root, settings.cache_dir)
        self._debug_artifact = layout.debug_artifact_path(root, settings.debug_artifact_name)
        self._changed_documents: set[str] = set()

    @property
    def target_dir(self) -> Path:
        return self._target

    # --- Public API ---

    async def run(self, task: str | None, force_new: bool = False) -> RunResult:
        """Execute (or resume) a run.

        Args:
            task: Natural-language task. None resumes whatever is pending.
            force_new: Discard any pending checkpoint and start over.

        Raises:
            RunInProgress: Another run holds the project lock.
            ModelGatewayError: The model call failed (after rollback).
        """
        started = time.monotonic_ns()
        if self._run_lock is not None:
            self._run_lock.acquire()
        self._loader.subscribe(self._on_document_reload)
        try:
            run, resumed = await self._start(task, force_new)
            if self._run_lock is not None:
                self._run_lock.record_run(run.id)
            set_run_context(run.id, project=str(self._root))
            result = RunResult(run_id=run.id, stage=run.stage, resumed=resumed)
            try:
                await self._execute(run, result, resumed)
            except Exception as exc:
                await self._fail(run, exc)
                raise
            result.stage = run.stage
            result.backup_name = run.backup_name
            result.duration_ms = (time.monotonic_ns() - started) // 1_000_000
            self._logger.info(
                "Run %s completed: %d generated, %d saved, %d skipped, %d failed (%dms)",
                run.id,
                result.files_generated,
                len(result.files_saved),
                len(result.skipped_files),
                len(result.failed_files),
                result.duration_ms,
            )
            return result
        finally:
            self._loader.unsubscribe(self._on_document_reload)
            if self._run_lock is not None:
                self._run_lock.release()
            clear_context()

    async def reset(self) -> None:
        """Forget any pending run: checkpoint, response artifact, rollback target."""
        await self._checkpoints.clear()
        self._response_artifact.unlink(missing_ok=True)
        self._backups.deactivate()
        self._logger.info("Pipeline state reset")

    # --- Run setup ---

    async def _start(self, task: str | None, force_new: bool) -> tuple[PipelineRun, bool]:
        existing = await self._checkpoints.load()
        if existing is not None:
            if force_new:
                self._logger.info("Discarding checkpoint of run %s (forced new run)", existing.id)
                existing = None
            elif not existing.in_progress:
                existing = None
            elif task is not None and existing.task.strip() != task.strip():
                self._logger.warning(
                    "Checkpoint belongs to a different task (%r); starting a fresh run",
                    existing.task[:80],
                )
                existing = None
            if existing is None:
                await self.reset()

        if existing is None:
            run = PipelineRun(task=(task or "").strip())
            await self._checkpoints.save(run)
            return run, False

        if existing.stage == "error":
            existing.stage = existing.failed_stage or "initialization"
        self._logger.info(
            "Resuming run %s at %s (%d generated, %d saved)",
            existing.id,
            existing.stage,
            len(existing.generated_files),
            len(existing.saved_files),
        )
        await self._checkpoints.save(existing)
        return existing, True

    async def _enter(self, run: PipelineRun, stage: Stage) -> None:
        """Enter a stage; the recorded stage only moves forward."""
        set_stage_context(stage, component="orchestrator")
        if stage_index(stage) > stage_index(run.stage):
            run.stage = stage
            await self._checkpoints.save(run)
        self._logger.info("Stage %s", stage)

    # --- Stages ---

    async def _execute(self, run: PipelineRun, result: RunResult, resumed: bool) -> None:
        set_stage_context("initialization", component="orchestrator")
        await self._initialize(run, resumed)

        await self._enter(run, "reading_documents")
        documents = await self._read_documents()

        await self._enter(run, "classification")
        classification = self._classifier.classify(run.task)

        await self._enter(run, "prompt_generation")
        prompt = self._prompt_builder.build(run.task, documents, classification)
        self._changed_documents.clear()

        await self._enter(run, "ai_request")
        response = self._reuse_response(run)
        if response is None:
            stale = self._changed_documents | {
                kind for kind in documents if self._loader.is_stale(kind)
            }
            if stale:
                self._logger.info(
                    "Documents changed during the run (%s); rebuilding prompt",
                    ", ".join(sorted(stale)),
                )
                documents = await self._read_documents()
                prompt = self._prompt_builder.build(run.task, documents, classification)
                self._changed_documents.clear()
            response = await self._request(prompt, classification)

        await self._enter(run, "parsing_files")
        try:
            units = self._parse(response, run.task)
        except ParseEmptyResult as exc:
            self._logger.warning("%s; raw response kept at %s", exc, self._debug_artifact)
            atomic_write_text(self._debug_artifact, response)
            result.debug_artifact = self._debug_artifact
            units = []
        self._record_generated(run, units)
        run.response_parsed = True
        await self._checkpoints.save(run)
        result.files_generated = len(units)

        await self._enter(run, "saving_files")
        await self._save_files(run, units, result)

        await self._enter(run, "completed")
        await self._complete(run)

    async def _initialize(self, run: PipelineRun, resumed: bool) -> None:
        layout.ensure_project_directories(self._root, self._settings.cache_dir)
        if resumed:
            if run.backup_name:
                try:
                    self._backups.activate(run.backup_name)
                except BackupNotFound:
                    self._logger.warning(
                        "Snapshot %s recorded by the checkpoint is gone; no rollback target",
                        run.backup_name,
                    )
            return

        if self._target.is_dir() and any(p.is_file() for p in self._target.rglob("*")):
            snapshot = await self._backups.snapshot(
                self._target, label=self._settings.backup_label
            )
            run.backup_name = snapshot.name
            await self._checkpoints.save(run)
        else:
            self._backups.deactivate()

    async def _read_documents(self) -> dict[str, str]:
        documents: dict[str, str] = {}
        for kind in self._loader.kinds:
            try:
                documents[kind] = await self._loader.load(kind)
            except (DocumentMissing, DocumentInvalid) as exc:
                if self._settings.require_documents:
                    raise
                self._logger.warning("%s; continuing without it", exc)
        return documents

    def _reuse_response(self, run: PipelineRun) -> str | None:
        if not run.response_parsed:
            return None
        try:
            response = self._response_artifact.read_text(encoding="utf-8")
        except OSError:
            self._logger.warning(
                "Response artifact %s is missing; calling the model again",
                self._response_artifact,
            )
            return None
        self._logger.info("Reusing stored model response (%d chars)", len(response))
        return response

    async def _request(self, prompt: str, classification: TaskClassification) -> str:
        options = GatewayOptions(
            provider=classification.provider,
            model=classification.model,
            temperature=self._settings.llm_temperature,
            max_tokens=self._settings.llm_max_tokens,
        )
        response = await self._gateway.send(prompt, options)
        atomic_write_text(self._response_artifact, response)
        return response

    def _parse(self, response: str, task: str) -> list[FileUnit]:
        units = self._parser.extract(response, context_hint=task)
        if not units:
            raise ParseEmptyResult("No files found in the model response")
        return units

    def _record_generated(self, run: PipelineRun, units: list[FileUnit]) -> None:
        known = set(run.generated_paths())
        for unit in units:
            if unit.normalized_path in known:
                continue
            known.add(unit.normalized_path)
            run.generated_files.append(
                GeneratedFile(path=unit.normalized_path, content_preview=unit.content)
            )

    async def _save_files(
        self, run: PipelineRun, units: list[FileUnit], result: RunResult
    ) -> None:
        for unit in units:
            path = unit.normalized_path
            if path in run.saved_files:
                result.skipped_files.append(path)
                continue
            try:
                self._write_unit(unit)
            except FileWriteError as exc:
                self._logger.error("%s", exc)
                result.failed_files.append(FileWriteFailure(path=path, error=exc.reason))
                continue
            run.saved_files.append(path)
            await self._checkpoints.save(run)
            result.files_saved.append(path)
            self._logger.info("Saved %s", path)

    def _write_unit(self, unit: FileUnit) -> Path:
        dest = layout.resolve_within(self._target, unit.normalized_path)
        if dest is None:
            raise FileWriteError(unit.normalized_path, "path escapes the target directory")
        try:
            atomic_write_text(dest, unit.content)
        except OSError as exc:
            raise FileWriteError(unit.normalized_path, str(exc)) from exc
        return dest

    async def _complete(self, run: PipelineRun) -> None:
        run.in_progress = False
        run.completed_at = datetime.now(timezone.utc)
        await self._checkpoints.clear()
        self._response_artifact.unlink(missing_ok=True)
        self._backups.deactivate()

    # --- Failure ---

    async def _fail(self, run: PipelineRun, exc: Exception) -> None:
        failed_stage = run.stage
        set_stage_context("error")
        run.failed_stage = failed_stage
        run.last_error = StageError(message=str(exc) or type(exc).__name__, stage=failed_stage)
        run.stage = "error"
        self._logger.exception("Run %s failed at %s", run.id, failed_stage)
        try:
            await self._rollback(run)
        except Exception:
            self._logger.exception("Rollback of run %s failed", run.id)
        await self._checkpoints.save(run)

    async def _rollback(self, run: PipelineRun) -> None:
        """Restore the pre-run snapshot and drop files the run created."""
        if not run.saved_files and run.backup_name is None:
            return

        preexisting: set[str] = set()
        if run.backup_name is not None:
            snapshot = self._backups.get_snapshot(run.backup_name)
            if snapshot is None:
                self._logger.error(
                    "Snapshot %s is gone; working tree left as is", run.backup_name
                )
                return
            preexisting = {f.relative_to(snapshot.path).as_posix() for f in snapshot.files}
            await self._backups.restore(snapshot.name)

        removed = 0
        for path in run.saved_files:
            if path in preexisting:
                continue
            dest = layout.resolve_within(self._target, path)
            if dest is not None and dest.is_file():
                dest.unlink()
                removed += 1
        run.saved_files = []
        self._logger.warning(
            "Rolled back run %s (snapshot=%s, %d created file(s) removed)",
            run.id, run.backup_name or "-", removed,
        )

    def _on_document_reload(self, kind: str, path: Path) -> None:
        self._changed_documents.add(kind)
