# src/core/errors.py — v1
"""Error taxonomy shared across components.

Document and parse problems degrade a run; gateway and unexpected errors
abort it after the checkpoint has recorded the failure.
"""

from __future__ import annotations

from pathlib import Path


class VibecodeError(Exception):
    """Base class for all orchestrator errors."""


# === DOCUMENTS ===


class DocumentMissing(VibecodeError):
    """No candidate path for an intent document exists."""

    def __init__(self, kind: str, candidates: list[Path]):
        self.kind = kind
        self.candidates = candidates
        tried = ", ".join(str(c) for c in candidates) or "<none>"
        super().__init__(f"{kind} document not found (tried: {tried})")


class DocumentInvalid(VibecodeError):
    """Document content is structurally unusable (e.g. empty)."""

    def __init__(self, kind: str, path: Path, reason: str):
        self.kind = kind
        self.path = path
        self.reason = reason
        super().__init__(f"{kind} document {path} is invalid: {reason}")


# === MODEL GATEWAY ===


class ModelGatewayError(VibecodeError):
    """Model call failed: timeout, HTTP/provider error, rate limit, empty reply."""

    def __init__(self, message: str, provider: str = "", model: str = ""):
        self.provider = provider
        self.model = model
        super().__init__(message)


# === PARSING / WRITING ===


class ParseEmptyResult(VibecodeError):
    """No file units could be extracted from a model response."""


class FileWriteError(VibecodeError):
    """A single generated file could not be written."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write {path}: {reason}")


# === CHECKPOINT ===


class CheckpointCorrupt(VibecodeError):
    """Checkpoint file is unreadable or does not match the schema."""


class CheckpointExpired(VibecodeError):
    """Checkpoint is older than the configured TTL."""

    def __init__(self, age_hours: float, ttl_hours: float):
        self.age_hours = age_hours
        self.ttl_hours = ttl_hours
        super().__init__(
            f"Checkpoint is {age_hours:.1f}h old (TTL {ttl_hours:.1f}h)"
        )


class RunInProgress(VibecodeError):
    """Another pipeline run holds the project lock."""


# === BACKUPS ===


class BackupNotFound(VibecodeError):
    """Requested snapshot does not exist."""
