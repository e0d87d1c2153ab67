# src/parser/paths.py — v2
"""Path Normalizer: turn a path-like token from model output into a relative path.

Normalized paths are relative to the target directory, use ``/``, carry a
whitelisted extension and never contain ``..``. ``normalize_path`` is
idempotent: feeding its output back in returns the same value.
"""

from __future__ import annotations

import re

ALLOWED_EXTENSIONS = frozenset({
    "js", "ts", "jsx", "tsx", "html", "css", "json", "md", "py",
    "java", "cpp", "c", "h", "txt", "xml", "yaml", "yml",
})

SCRIPT_EXTENSIONS = frozenset({"js", "ts", "jsx", "tsx"})

# Template tokens a model copies verbatim from format instructions.
# Matched against the whole token, so real files such as path.js pass.
PLACEHOLDERS = frozenset({"filepath", "path", "filename", "path/to/file"})

# Default root prefix stripped from every path; the target directory name.
ROOT_SEGMENT = "src"

_EXT_ALTERNATION = "|".join(sorted(ALLOWED_EXTENSIONS, key=len, reverse=True))
_SCRIPT_ALTERNATION = "|".join(sorted(SCRIPT_EXTENSIONS, key=len, reverse=True))

# A path token as it appears in free text or a fence info string.
PATH_TOKEN = rf"[\w/\\.\-]+\.(?:{_EXT_ALTERNATION})\b"
SCRIPT_PATH_TOKEN = rf"[\w/\\.\-]+\.(?:{_SCRIPT_ALTERNATION})\b"

_PATH_TOKEN_RE = re.compile(PATH_TOKEN, re.IGNORECASE)
_TEMPLATE_STEMS = frozenset(p for p in PLACEHOLDERS if "/" in p)
_SEGMENT_RE = re.compile(r"^[\w.\-]+$")
_WRAPPING = "`'\" \t\r\n"


def normalize_path(raw: str | None, root: str = ROOT_SEGMENT) -> str | None:
    """Normalize a raw path token, or return None if it is not a usable path.

    ``root`` is the target directory name; any leading run of it is dropped
    (``app/app/main.js`` -> ``main.js`` for root ``app``). It may span
    several segments.
    """
    if not raw or not isinstance(raw, str):
        return None

    cleaned = raw.strip(_WRAPPING).replace("\\", "/")
    if ":" in cleaned:
        return None

    segments: list[str] = []
    for segment in cleaned.split("/"):
        segment = segment.strip()
        if segment in ("", "."):
            continue
        if segment == ".." or not _SEGMENT_RE.match(segment):
            return None
        segments.append(segment)

    root_segments = _root_segments(root)
    width = len(root_segments)
    while width and segments[:width] == root_segments:
        del segments[:width]

    result = "/".join(segments)
    if len(result) < 3:
        return None

    stem, dot, extension = result.rpartition(".")
    if not dot or not stem or stem.endswith("/"):
        return None
    if extension.lower() not in ALLOWED_EXTENSIONS:
        return None
    if result.lower() in PLACEHOLDERS or stem.lower() in _TEMPLATE_STEMS:
        return None
    return result


def _root_segments(root: str | None) -> list[str]:
    if not root:
        return []
    parts = (s.strip() for s in root.replace("\\", "/").split("/"))
    return [s for s in parts if s not in ("", ".")]


def is_path_token(token: str) -> bool:
    """True if the whole token looks like a path with a known extension."""
    return _PATH_TOKEN_RE.fullmatch(token.strip(_WRAPPING)) is not None


def extension_of(path: str) -> str:
    _, dot, extension = path.rpartition(".")
    return extension.lower() if dot else ""
