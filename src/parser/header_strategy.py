# src/parser/header_strategy.py — v1
"""Explicit-header strategy: the block names its own path.

Accepted forms: a path token on the opening fence (```` ```src/main.js ````
or ```` ```javascript src/main.js ````), or a path alone on the first inner
line, optionally wrapped in ``//``, ``#`` or ``<!-- -->``.
"""

from __future__ import annotations

import re

from vibecode.core.models import FileUnit, StrategyName
from vibecode.parser.base_strategy import ExtractionContext, ExtractionStrategy
from vibecode.parser.fences import FencedBlock
from vibecode.parser.paths import PATH_TOKEN, is_path_token, normalize_path

_HEADER_LINE_RE = re.compile(
    r"^\s*(?://|#|<!--)?\s*(?:(?:file|path|файл)\s*:\s*)?"
    rf"[`'\"]?({PATH_TOKEN})[`'\"]?\s*(?:-->)?\s*$",
    re.IGNORECASE,
)


class ExplicitHeaderStrategy(ExtractionStrategy):
    """One unit per fenced block that carries a path header."""

    @property
    def strategy_name(self) -> StrategyName:
        return "explicit_header"

    def extract(self, text: str, context: ExtractionContext) -> list[FileUnit]:
        units: list[FileUnit] = []
        for block in context.blocks:
            if context.is_claimed(block):
                continue
            found = self._header(block)
            if found is None:
                continue
            raw_path, content = found
            normalized = normalize_path(raw_path, context.root)
            if normalized is None:
                continue
            context.claim(block)
            units.append(self._unit(raw_path, normalized, content.strip(), block))
        return units

    @staticmethod
    def _header(block: FencedBlock) -> tuple[str, str] | None:
        """Return (raw path, content without header) or None."""
        for token in block.info.split():
            if is_path_token(token):
                return token.strip("`'\""), block.body

        first_line, _, rest = block.body.partition("\n")
        match = _HEADER_LINE_RE.match(first_line)
        if match:
            return match.group(1), rest
        return None
