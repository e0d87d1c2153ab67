# src/parser/base_strategy.py — v2
"""Abstract extraction strategy interface and the shared extraction context."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from vibecode.core.models import FileUnit, StrategyName
from vibecode.parser.fences import FencedBlock
from vibecode.parser.paths import ROOT_SEGMENT


@dataclass
class ExtractionContext:
    """State shared by the strategies of one parse pass.

    ``units`` holds the accepted units of earlier strategies; strategies
    read it for their gating conditions. ``claimed`` holds block indices
    already consumed as file content. ``root`` is the target directory
    name handed to ``normalize_path``.
    """

    hint: str = ""
    root: str = ROOT_SEGMENT
    blocks: list[FencedBlock] = field(default_factory=list)
    units: list[FileUnit] = field(default_factory=list)
    claimed: set[int] = field(default_factory=set)

    @property
    def produced_paths(self) -> set[str]:
        return {u.normalized_path for u in self.units}

    def claim(self, block: FencedBlock) -> None:
        self.claimed.add(block.index)

    def is_claimed(self, block: FencedBlock) -> bool:
        return block.index in self.claimed

    def next_unclaimed_block(self, position: int) -> FencedBlock | None:
        """First unclaimed block starting at or after ``position``."""
        for block in self.blocks:
            if block.start >= position and block.index not in self.claimed:
                return block
        return None


class ExtractionStrategy(ABC):
    """Unified interface for response extraction heuristics."""

    @property
    @abstractmethod
    def strategy_name(self) -> StrategyName:
        """Strategy identifier recorded on every unit it produces."""

    @abstractmethod
    def extract(self, text: str, context: ExtractionContext) -> list[FileUnit]:
        """Scan the whole response and return the units this heuristic finds."""

    def _unit(
        self, raw_path: str, normalized_path: str, content: str, block: FencedBlock
    ) -> FileUnit:
        return FileUnit(
            raw_path=raw_path,
            normalized_path=normalized_path,
            content=content,
            strategy=self.strategy_name,
            block_index=block.index,
        )
