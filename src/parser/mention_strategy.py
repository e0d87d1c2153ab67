# src/parser/mention_strategy.py — v1
"""Mentioned-path strategy: prose names a file, the next free block holds it."""

from __future__ import annotations

import re

from vibecode.core.models import FileUnit, StrategyName
from vibecode.parser.base_strategy import ExtractionContext, ExtractionStrategy
from vibecode.parser.fences import inside_fence
from vibecode.parser.paths import PATH_TOKEN, normalize_path

_MENTION_RE = re.compile(
    r"(?<!\w)(?:file\s+named|файл\s+называется|file|файл|path|путь"
    r"|создаю|создам|сохранить|сохрани)"
    rf"[:\s]+[`'\"*]*({PATH_TOKEN})",
    re.IGNORECASE,
)


class MentionedPathStrategy(ExtractionStrategy):
    """Pair 'file: x.js' style mentions with the nearest unclaimed block."""

    @property
    def strategy_name(self) -> StrategyName:
        return "mentioned_path"

    def extract(self, text: str, context: ExtractionContext) -> list[FileUnit]:
        units: list[FileUnit] = []
        seen = set(context.produced_paths)
        for match in _MENTION_RE.finditer(text):
            if inside_fence(match.start(), context.blocks):
                continue
            raw_path = match.group(1)
            normalized = normalize_path(raw_path, context.root)
            if normalized is None or normalized in seen:
                continue
            block = context.next_unclaimed_block(match.end())
            if block is None:
                continue
            context.claim(block)
            seen.add(normalized)
            units.append(self._unit(raw_path, normalized, block.body.strip(), block))
        return units
