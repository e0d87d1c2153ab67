# src/checkpoint/run_lock.py — v2
"""Exclusive per-project run lock backed by an O_EXCL lock file.

A lock whose owning process is gone (same host) or that is older than the
stale threshold is taken over.
"""

from __future__ import annotations

import json
import logging
import os
import socket
import time
from pathlib import Path
from typing import Any

from vibecode.core.errors import RunInProgress
from vibecode.logging.logger import get_logger
from vibecode.storage.local_writer import atomic_write_text

# An unreadable lock younger than this is assumed to be mid-write.
_FRESH_WRITE_GRACE_SECONDS = 5.0


def _pid_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    except OSError:
        return False
    return True


class RunLock:
    """Held for the duration of one pipeline run."""

    def __init__(
        self,
        path: Path,
        stale_after_seconds: float = 24 * 3600,
        logger: logging.Logger | None = None,
    ) -> None:
        self._path = Path(path)
        self._stale_after = stale_after_seconds
        self._logger = logger or get_logger("run_lock")
        self._held = False
        self._started_at = 0.0

    @property
    def path(self) -> Path:
        return self._path

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self, run_id: str = "") -> None:
        """Create the lock file.

        Raises:
            RunInProgress: A live run already holds the lock.
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        for _ in range(2):
            try:
                fd = os.open(str(self._path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o600)
            except FileExistsError:
                existing = self._read()
                if not self._is_stale(existing):
                    owner = existing or {}
                    raise RunInProgress(
                        f"Run already active (run_id={owner.get('run_id', '?')}, "
                        f"host={owner.get('host', '?')}, pid={owner.get('pid', '?')})"
                    ) from None
                self._logger.warning("Taking over stale run lock %s: %s", self._path, existing)
                try:
                    self._path.unlink()
                except FileNotFoundError:
                    pass
                continue

            self._started_at = time.time()
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(json.dumps(self._payload(run_id)))
            self._held = True
            self._logger.debug("Run lock acquired: %s", self._path)
            return
        raise RunInProgress(f"Could not acquire run lock {self._path}")

    def record_run(self, run_id: str) -> None:
        """Write the owning run id into a held lock."""
        if not self._held:
            return
        atomic_write_text(self._path, json.dumps(self._payload(run_id)))

    def release(self) -> None:
        if not self._held:
            return
        try:
            self._path.unlink()
        except FileNotFoundError:
            pass
        self._held = False
        self._logger.debug("Run lock released: %s", self._path)

    def __enter__(self) -> RunLock:
        self.acquire()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.release()

    def _payload(self, run_id: str) -> dict[str, Any]:
        return {
            "pid": os.getpid(),
            "host": socket.gethostname(),
            "run_id": run_id,
            "started_at": self._started_at,
        }

    def _read(self) -> dict[str, Any] | None:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return None
        return data if isinstance(data, dict) else None

    def _is_stale(self, payload: dict[str, Any] | None) -> bool:
        if payload is None:
            try:
                age = time.time() - self._path.stat().st_mtime
            except FileNotFoundError:
                return True
            return age > _FRESH_WRITE_GRACE_SECONDS

        started_at = payload.get("started_at")
        if isinstance(started_at, (int, float)) and time.time() - started_at > self._stale_after:
            return True
        pid = payload.get("pid")
        if payload.get("host") == socket.gethostname() and isinstance(pid, int):
            return not _pid_alive(pid)
        return False
