# src/storage/layout.py — v2
"""Project directory structure definition.

Defines path conventions for the working tree, run state, backups and
debug output, all relative to a project root.
"""

from __future__ import annotations

from pathlib import Path

# Files under {project}/{cache_dir}/
CHECKPOINT_FILE = "selfbuild-state.json"
RESPONSE_ARTIFACT_FILE = "last-response.txt"
LOCK_FILE = "pipeline.lock"

# Per-snapshot manifest under {project}/{backup_dir}/{name}/
SNAPSHOT_MANIFEST = "snapshot.json"

# Never copied into a snapshot.
EXCLUDED_DIRS = frozenset({
    ".git",
    ".svn",
    ".hg",
    "node_modules",
    ".venv",
    "venv",
    "__pycache__",
    ".cache",
    "cache",
    "logs",
    "backups",
})


def target_dir(project_root: Path, name: str = "src") -> Path:
    """Return the directory generated files are written into."""
    return project_root / name


def cache_dir(project_root: Path, name: str = "cache") -> Path:
    return project_root / name


def backups_dir(project_root: Path, name: str = "backups") -> Path:
    return project_root / name


def checkpoint_path(project_root: Path, cache_name: str = "cache") -> Path:
    return cache_dir(project_root, cache_name) / CHECKPOINT_FILE


def response_artifact_path(project_root: Path, cache_name: str = "cache") -> Path:
    """Return where the last raw model response is kept for resume."""
    return cache_dir(project_root, cache_name) / RESPONSE_ARTIFACT_FILE


def lock_path(project_root: Path, cache_name: str = "cache") -> Path:
    return cache_dir(project_root, cache_name) / LOCK_FILE


def debug_artifact_path(project_root: Path, name: str = "debug-response.txt") -> Path:
    """Return where an unparseable response is dumped."""
    return project_root / name


def resolve_within(base: Path, relative: str) -> Path | None:
    """Join ``relative`` onto ``base``; None if the result escapes ``base``."""
    base_resolved = base.resolve()
    candidate = (base_resolved / relative).resolve()
    if candidate == base_resolved or base_resolved not in candidate.parents:
        return None
    return candidate


def ensure_project_directories(project_root: Path, cache_name: str = "cache") -> None:
    """Create the directories run state is written to."""
    cache_dir(project_root, cache_name).mkdir(parents=True, exist_ok=True)
