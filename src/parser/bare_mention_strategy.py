# src/parser/bare_mention_strategy.py — v1
"""Bare-mention strategy: last resort when nothing else matched.

Any path with a known extension outside fences is taken as a file name
and paired with the next unclaimed block.
"""

from __future__ import annotations

import re

from vibecode.core.models import FileUnit, StrategyName
from vibecode.parser.base_strategy import ExtractionContext, ExtractionStrategy
from vibecode.parser.fences import inside_fence
from vibecode.parser.paths import PATH_TOKEN, normalize_path

_BARE_PATH_RE = re.compile(rf"(?<![\w/\\.\-])({PATH_TOKEN})", re.IGNORECASE)


class BareMentionStrategy(ExtractionStrategy):
    @property
    def strategy_name(self) -> StrategyName:
        return "bare_mention"

    def extract(self, text: str, context: ExtractionContext) -> list[FileUnit]:
        if context.units:
            return []
        units: list[FileUnit] = []
        seen: set[str] = set()
        for match in _BARE_PATH_RE.finditer(text):
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
