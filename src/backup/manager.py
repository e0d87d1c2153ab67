# src/backup/manager.py — v1
"""Backup/Rollback Manager: point-in-time snapshots of files or directories.

Snapshots live in ``<backup_dir>/<name>/`` with a ``snapshot.json``
manifest. One snapshot at a time is active; ``restore()`` without a name
uses it, falling back to the newest snapshot whose name carries the
known-good prefix. Restore copies file by file and is not atomic.
"""

from __future__ import annotations

import json
import logging
import shutil
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from pathlib import Path

from vibecode.core.errors import BackupNotFound
from vibecode.core.models import BackupSnapshot
from vibecode.logging.logger import get_logger
from vibecode.storage.layout import EXCLUDED_DIRS, SNAPSHOT_MANIFEST


def timestamp_slug(now: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with ':' and '.' replaced by '-'."""
    now = now or datetime.now(timezone.utc)
    iso = now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")
    iso += f".{now.microsecond // 1000:03d}Z"
    return iso.replace(":", "-").replace(".", "-")


class BackupManager:
    """Create, list, restore and prune snapshots under one backup directory."""

    def __init__(
        self,
        backup_dir: Path,
        known_good_prefix: str = "working-version-",
        excluded_dirs: Iterable[str] = EXCLUDED_DIRS,
        default_source: Path | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            backup_dir: Directory that holds one folder per snapshot.
            known_good_prefix: Name prefix of fallback restore targets.
            excluded_dirs: Directory names never copied into a snapshot.
            default_source: Restore target for snapshots without a manifest.
            logger: Injected logger (defaults to ``vibecode.backup``).
        """
        self._dir = Path(backup_dir)
        self._known_good_prefix = known_good_prefix
        self._excluded = frozenset(excluded_dirs)
        self._default_source = default_source
        self._logger = logger or get_logger("backup")
        self._active: BackupSnapshot | None = None

    @property
    def backup_dir(self) -> Path:
        return self._dir

    @property
    def active(self) -> BackupSnapshot | None:
        return self._active

    # --- Create ---

    async def snapshot(
        self, source_path: Path, name: str | None = None, label: str = "backup"
    ) -> BackupSnapshot:
        """Copy ``source_path`` into a new snapshot and make it active.

        Raises:
            FileNotFoundError: ``source_path`` does not exist.
        """
        source = Path(source_path)
        if not source.exists():
            raise FileNotFoundError(f"Cannot snapshot missing path: {source}")

        created_at = datetime.now(timezone.utc)
        final_name = self._unique_name(name or f"{label}-{timestamp_slug(created_at)}")
        target = self._dir / final_name
        target.mkdir(parents=True)

        if source.is_file():
            kind = "file"
            copied = [target / source.name]
            shutil.copy2(source, copied[0])
        else:
            kind = "directory"
            copied = []
            for file_path in self._walk(source):
                dest = target / file_path.relative_to(source)
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(file_path, dest)
                copied.append(dest)

        snapshot = BackupSnapshot(
            name=final_name,
            path=target,
            source_path=source.resolve(),
            kind=kind,
            files=copied,
            created_at=created_at,
        )
        self._write_manifest(snapshot)
        self._active = snapshot
        self._logger.info(
            "Snapshot %s created from %s (%d file(s))", final_name, source, len(copied)
        )
        return snapshot

    # --- Query ---

    def get_snapshot(self, name: str) -> BackupSnapshot | None:
        path = self._dir / name
        if not path.is_dir():
            return None
        manifest_path = path / SNAPSHOT_MANIFEST
        files = [p for p in self._walk(path) if p != manifest_path]
        if manifest_path.is_file():
            try:
                manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
                return BackupSnapshot(
                    name=name,
                    path=path,
                    source_path=Path(manifest["source"]),
                    kind=manifest.get("kind", "directory"),
                    files=files,
                    created_at=datetime.fromisoformat(manifest["created_at"]),
                )
            except (OSError, ValueError, KeyError) as exc:
                self._logger.warning("Unreadable manifest in snapshot %s: %s", name, exc)
        if self._default_source is None:
            return None
        return BackupSnapshot(
            name=name,
            path=path,
            source_path=self._default_source,
            kind="directory",
            files=files,
            created_at=datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc),
        )

    def list_snapshots(self) -> list[BackupSnapshot]:
        """All readable snapshots, newest first."""
        if not self._dir.is_dir():
            return []
        snapshots = [
            snap
            for entry in self._dir.iterdir()
            if entry.is_dir() and (snap := self.get_snapshot(entry.name)) is not None
        ]
        return sorted(snapshots, key=lambda s: s.created_at, reverse=True)

    def activate(self, name: str) -> BackupSnapshot:
        """Make an existing snapshot the rollback target."""
        snapshot = self.get_snapshot(name)
        if snapshot is None:
            raise BackupNotFound(f"Snapshot {name!r} not found in {self._dir}")
        self._active = snapshot
        return snapshot

    def deactivate(self) -> None:
        self._active = None

    def resolve(self, name: str | None = None) -> BackupSnapshot | None:
        """Pick the restore target: named, else active, else newest known-good."""
        snapshot: BackupSnapshot | None = None
        if name:
            snapshot = self.get_snapshot(name)
            if snapshot is None:
                snapshot = next(
                    (s for s in self.list_snapshots() if name in s.name), None
                )
        else:
            snapshot = self._active
        if snapshot is None:
            snapshot = next(
                (
                    s
                    for s in self.list_snapshots()
                    if s.name.startswith(self._known_good_prefix)
                ),
                None,
            )
            if snapshot is not None:
                self._logger.info("Falling back to known-good snapshot %s", snapshot.name)
        return snapshot

    # --- Restore ---

    async def restore(self, name: str | None = None) -> bool:
        """Copy a snapshot back over its source. False when no snapshot was found."""
        snapshot = self.resolve(name)
        if snapshot is None:
            self._logger.warning("No snapshot available to restore (requested=%s)", name)
            return False

        restored = 0
        for backup_file in snapshot.files:
            if snapshot.kind == "file":
                dest = snapshot.source_path
            else:
                dest = snapshot.source_path / backup_file.relative_to(snapshot.path)
            try:
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(backup_file, dest)
                restored += 1
            except OSError as exc:
                self._logger.error("Failed to restore %s: %s", dest, exc)
        self._logger.info(
            "Restored snapshot %s into %s (%d/%d file(s))",
            snapshot.name,
            snapshot.source_path,
            restored,
            len(snapshot.files),
        )
        return True

    # --- Delete ---

    async def delete(self, name: str) -> None:
        path = self._dir / name
        if not path.is_dir():
            raise BackupNotFound(f"Snapshot {name!r} not found in {self._dir}")
        shutil.rmtree(path)
        if self._active is not None and self._active.name == name:
            self._active = None
        self._logger.info("Snapshot %s deleted", name)

    async def clean_old(self, days: int = 7) -> int:
        """Delete snapshots older than ``days``; the active one is kept."""
        cutoff = datetime.now(timezone.utc) - timedelta(days=days)
        deleted = 0
        for snapshot in self.list_snapshots():
            if snapshot.created_at >= cutoff:
                continue
            if self._active is not None and snapshot.name == self._active.name:
                continue
            try:
                await self.delete(snapshot.name)
                deleted += 1
            except OSError as exc:
                self._logger.warning("Could not delete snapshot %s: %s", snapshot.name, exc)
        if deleted:
            self._logger.info("Retention sweep removed %d snapshot(s)", deleted)
        return deleted

    # --- Internals ---

    def _walk(self, root: Path) -> list[Path]:
        files: list[Path] = []
        for entry in sorted(root.iterdir()):
            if entry.is_dir():
                if entry.name not in self._excluded:
                    files.extend(self._walk(entry))
            elif entry.is_file():
                files.append(entry)
        return files

    def _unique_name(self, name: str) -> str:
        candidate, suffix = name, 1
        while (self._dir / candidate).exists():
            candidate = f"{name}-{suffix}"
            suffix += 1
        return candidate

    @staticmethod
    def _write_manifest(snapshot: BackupSnapshot) -> None:
        manifest = {
            "name": snapshot.name,
            "source": str(snapshot.source_path),
            "kind": snapshot.kind,
            "created_at": snapshot.created_at.isoformat(),
            "files": [str(f.relative_to(snapshot.path)) for f in snapshot.files],
        }
        (snapshot.path / SNAPSHOT_MANIFEST).write_text(
            json.dumps(manifest, indent=2), encoding="utf-8"
        )
