# src/parser/response_parser.py — v2
"""Response Parser: run extraction strategies in priority order, then merge.

Strategies scan the whole response; each sees the accepted units of the
strategies before it through the shared ExtractionContext. Units that are
too short or name a placeholder are discarded by ``accept_units`` before
they reach the context, so they never gate a later strategy.
Deduplication happens once, in ``merge_units``: the first unit for a
normalized path wins and output keeps order of first discovery.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence

from vibecode.core.models import FileUnit
from vibecode.logging.logger import get_logger
from vibecode.parser.bare_mention_strategy import BareMentionStrategy
from vibecode.parser.base_strategy import ExtractionContext, ExtractionStrategy
from vibecode.parser.fences import has_fence, normalize_newlines, scan_fences
from vibecode.parser.header_strategy import ExplicitHeaderStrategy
from vibecode.parser.language_strategy import DefaultLanguageStrategy
from vibecode.parser.mention_strategy import MentionedPathStrategy
from vibecode.parser.paths import ROOT_SEGMENT, normalize_path

_FILE_MENTION_RE = re.compile(
    r"(?:file|файл|path|путь|\.(?:js|ts|html|css|json|md|py|java|cpp|c|h|txt|xml|yaml|yml)\b)",
    re.IGNORECASE,
)


def default_strategies(
    html_min_chars: int = 50, css_min_chars: int = 10, script_min_chars: int = 20
) -> list[ExtractionStrategy]:
    """Strategies in priority order."""
    return [
        ExplicitHeaderStrategy(),
        MentionedPathStrategy(),
        DefaultLanguageStrategy(html_min_chars, css_min_chars, script_min_chars),
        BareMentionStrategy(),
    ]


def accept_units(
    units: Iterable[FileUnit], min_content_chars: int = 10, root: str = ROOT_SEGMENT
) -> list[FileUnit]:
    """Drop units with too little content or a path that fails normalization."""
    return [
        unit
        for unit in units
        if len(unit.content.strip()) >= min_content_chars
        and normalize_path(unit.normalized_path, root) is not None
    ]


def merge_units(groups: Iterable[Iterable[FileUnit]]) -> list[FileUnit]:
    """Flatten unit groups in priority order, keeping the first unit per path."""
    merged: dict[str, FileUnit] = {}
    for group in groups:
        for unit in group:
            merged.setdefault(unit.normalized_path, unit)
    return list(merged.values())


def has_files(text: str | None) -> bool:
    """Quick check: at least one fenced block and one file mention."""
    if not text:
        return False
    return has_fence(text) and _FILE_MENTION_RE.search(text) is not None


class ResponseParser:
    """Extract FileUnits from a free-text model response."""

    def __init__(
        self,
        strategies: Sequence[ExtractionStrategy] | None = None,
        min_content_chars: int = 10,
        root_segment: str = ROOT_SEGMENT,
        logger: logging.Logger | None = None,
    ) -> None:
        self._strategies = list(strategies) if strategies is not None else default_strategies()
        self._min_content_chars = min_content_chars
        self._root = root_segment
        self._logger = logger or get_logger("parser")

    @property
    def strategies(self) -> list[ExtractionStrategy]:
        return list(self._strategies)

    def extract(self, response_text: str | None, context_hint: str = "") -> list[FileUnit]:
        """Return the file units found in ``response_text`` (possibly empty)."""
        if not response_text or not response_text.strip():
            return []

        text = normalize_newlines(response_text)
        context = ExtractionContext(
            hint=context_hint, root=self._root, blocks=scan_fences(text)
        )
        groups: list[list[FileUnit]] = []

        for strategy in self._strategies:
            found = strategy.extract(text, context)
            units = accept_units(found, self._min_content_chars, self._root)
            if len(units) < len(found):
                self._logger.debug(
                    "%s: discarded %d unit(s) with short content or placeholder path",
                    strategy.strategy_name,
                    len(found) - len(units),
                )
            if units:
                self._logger.debug(
                    "%s produced %d unit(s): %s",
                    strategy.strategy_name,
                    len(units),
                    ", ".join(u.normalized_path for u in units),
                )
            groups.append(units)
            context.units.extend(units)

        merged = merge_units(groups)
        self._logger.info(
            "Parsed %d file(s) from %d fenced block(s)", len(merged), len(context.blocks)
        )
        return merged
