# src/documents/loader.py — v1
"""Document Context Loader: Vision/Roadmap intent documents with staleness checks.

Each kind resolves to the first existing candidate path under the project
root. Content is cached per instance together with the file mtime; a
changed path or mtime marks the cache stale and the next load re-reads it.
Subscribers are notified after every successful reload.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from vibecode.core.errors import DocumentInvalid, DocumentMissing
from vibecode.logging.logger import get_logger

DEFAULT_CANDIDATES: dict[str, list[str]] = {
    "vision": ["Vision.md", "docs/Vision.md", "docs/ru/Vision.md"],
    "roadmap": [
        "Roadmap.md",
        "ROADMAP_DORABOTKA.md",
        "docs/Roadmap.md",
        "docs/ru/Roadmap.md",
    ],
}

ReloadCallback = Callable[[str, Path], None]


@dataclass
class CachedDocument:
    """Last successfully read content of one document kind."""

    data: str
    mtime: float
    path: Path
    warnings: list[str] = field(default_factory=list)


class DocumentContextLoader:
    """Load and cache project intent documents."""

    def __init__(
        self,
        project_root: Path,
        candidates: dict[str, list[str]] | None = None,
        min_length: int = 100,
        logger: logging.Logger | None = None,
    ) -> None:
        self._root = Path(project_root)
        self._candidates = candidates or DEFAULT_CANDIDATES
        self._min_length = min_length
        self._logger = logger or get_logger("documents")
        self._cache: dict[str, CachedDocument] = {}
        self._subscribers: list[ReloadCallback] = []

    @property
    def kinds(self) -> list[str]:
        return list(self._candidates)

    def candidates(self, kind: str) -> list[Path]:
        try:
            rel_paths = self._candidates[kind]
        except KeyError:
            raise ValueError(f"Unknown document kind: {kind!r}") from None
        return [self._root / rel for rel in rel_paths]

    def resolve(self, kind: str) -> Path:
        """Return the first existing candidate path for ``kind``.

        Raises:
            DocumentMissing: No candidate exists.
        """
        candidates = self.candidates(kind)
        for path in candidates:
            if path.is_file():
                return path
        raise DocumentMissing(kind, candidates)

    def is_stale(self, kind: str) -> bool:
        """True if nothing is cached or the resolved file changed on disk."""
        cached = self._cache.get(kind)
        if cached is None:
            return True
        try:
            path = self.resolve(kind)
            mtime = path.stat().st_mtime
        except (DocumentMissing, OSError):
            return True
        return path != cached.path or mtime != cached.mtime

    async def load(self, kind: str) -> str:
        """Return cached content, re-reading when the cache is stale."""
        cached = self._cache.get(kind)
        if cached is not None and not self.is_stale(kind):
            return cached.data
        return await self.reload(kind)

    async def reload(self, kind: str) -> str:
        """Unconditionally re-read, validate and cache ``kind``.

        Raises:
            DocumentMissing: No candidate exists.
            DocumentInvalid: File is unreadable or empty.
        """
        path = self.resolve(kind)
        try:
            mtime = path.stat().st_mtime
            data = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise DocumentInvalid(kind, path, f"unreadable: {exc}") from exc

        warnings = self._validate(kind, path, data)
        self._cache[kind] = CachedDocument(
            data=data, mtime=mtime, path=path, warnings=warnings
        )
        self._logger.info(
            "Loaded %s document from %s (%d chars)", kind, path, len(data)
        )
        self._notify(kind, path)
        return data

    def warnings(self, kind: str) -> list[str]:
        """Validation warnings from the last successful read of ``kind``."""
        cached = self._cache.get(kind)
        return list(cached.warnings) if cached else []

    def check_freshness(self) -> dict[str, bool]:
        """Map each kind to True when its cache is up to date."""
        return {kind: not self.is_stale(kind) for kind in self._candidates}

    def invalidate(self, kind: str | None = None) -> None:
        """Drop the cache for one kind, or all kinds."""
        if kind is None:
            self._cache.clear()
        else:
            self._cache.pop(kind, None)

    def subscribe(self, callback: ReloadCallback) -> None:
        """Register ``callback(kind, path)`` to run after each reload."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: ReloadCallback) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _validate(self, kind: str, path: Path, data: str) -> list[str]:
        if not data.strip():
            raise DocumentInvalid(kind, path, "document is empty")
        warnings: list[str] = []
        if not any(line.startswith("# ") for line in data.splitlines()):
            warnings.append("no top-level '# ' heading")
        if len(data.strip()) < self._min_length:
            warnings.append(
                f"shorter than {self._min_length} chars ({len(data.strip())})"
            )
        for message in warnings:
            self._logger.warning("%s document %s: %s", kind, path, message)
        return warnings

    def _notify(self, kind: str, path: Path) -> None:
        for callback in list(self._subscribers):
            try:
                callback(kind, path)
            except Exception:
                self._logger.exception("Reload subscriber failed for %s", kind)
