# src/parser/language_strategy.py — v1
"""Default-by-language strategy: untitled html/css/script blocks get default names.

At most one unit per file class, and only when no earlier strategy
produced a file of that class.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePosixPath

from vibecode.core.models import FileUnit, StrategyName
from vibecode.parser.base_strategy import ExtractionContext, ExtractionStrategy
from vibecode.parser.fences import FencedBlock
from vibecode.parser.paths import SCRIPT_EXTENSIONS, SCRIPT_PATH_TOKEN, extension_of, normalize_path

SCRIPT_TAGS = frozenset({"javascript", "js", "typescript", "ts", "jsx", "tsx"})
TYPESCRIPT_TAGS = frozenset({"typescript", "ts", "tsx"})

# "<verb> <file>" in the task text names the script file being worked on.
_VERB_FILE_RE = re.compile(
    r"(?<!\w)(?:create|write|update|modify|edit|add|fix|implement"
    r"|создай|напиши|доработай|обнови|измени|изменяю|редактирую|редактируй"
    r"|добавь|добавить)\s+(?:(?:the|a|file|файл)\s+)*[`'\"]?"
    rf"({SCRIPT_PATH_TOKEN})",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class _FileClass:
    name: str
    tags: frozenset[str]
    extensions: frozenset[str]
    min_chars: int


class DefaultLanguageStrategy(ExtractionStrategy):
    """Name the first sufficiently long html, css and script block."""

    def __init__(
        self, html_min_chars: int = 50, css_min_chars: int = 10, script_min_chars: int = 20
    ) -> None:
        self._classes = (
            _FileClass("html", frozenset({"html", "htm"}), frozenset({"html"}), html_min_chars),
            _FileClass("css", frozenset({"css"}), frozenset({"css"}), css_min_chars),
            _FileClass("script", SCRIPT_TAGS, SCRIPT_EXTENSIONS, script_min_chars),
        )

    @property
    def strategy_name(self) -> StrategyName:
        return "default_language"

    def extract(self, text: str, context: ExtractionContext) -> list[FileUnit]:
        units: list[FileUnit] = []
        produced_exts = {extension_of(p) for p in context.produced_paths}
        for file_class in self._classes:
            if produced_exts & file_class.extensions:
                continue
            block = self._first_block(context, file_class)
            if block is None:
                continue
            name = self._default_name(file_class, block, context.hint)
            normalized = normalize_path(name, context.root)
            if normalized is None:
                continue
            context.claim(block)
            units.append(self._unit(name, normalized, block.body.strip(), block))
        return units

    @staticmethod
    def _first_block(context: ExtractionContext, file_class: _FileClass) -> FencedBlock | None:
        for block in context.blocks:
            if context.is_claimed(block) or block.language not in file_class.tags:
                continue
            if len(block.body.strip()) > file_class.min_chars:
                return block
        return None

    @staticmethod
    def _default_name(file_class: _FileClass, block: FencedBlock, hint: str) -> str:
        if file_class.name == "html":
            return "index.html"
        if file_class.name == "css":
            return "style.css"
        match = _VERB_FILE_RE.search(hint or "")
        if match:
            return PurePosixPath(match.group(1).replace("\\", "/")).name
        return "script.ts" if block.language in TYPESCRIPT_TAGS else "script.js"
