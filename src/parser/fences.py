# src/parser/fences.py — v1
"""Fenced code block scanner for model responses."""

from __future__ import annotations

import re
from dataclasses import dataclass

_FENCE_RE = re.compile(r"```([^\n`]*)\n(.*?)```", re.DOTALL)


@dataclass(frozen=True)
class FencedBlock:
    """One ```-delimited block: info string, body and offsets in the text."""

    index: int
    info: str
    body: str
    start: int
    end: int

    @property
    def language(self) -> str:
        """First info token, lowercased ('' when the fence is bare)."""
        tokens = self.info.split()
        return tokens[0].lower() if tokens else ""


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def scan_fences(text: str) -> list[FencedBlock]:
    """Return all closed fenced blocks in order of appearance."""
    blocks: list[FencedBlock] = []
    for match in _FENCE_RE.finditer(text):
        blocks.append(
            FencedBlock(
                index=len(blocks),
                info=match.group(1).strip(),
                body=match.group(2),
                start=match.start(),
                end=match.end(),
            )
        )
    return blocks


def inside_fence(position: int, blocks: list[FencedBlock]) -> bool:
    return any(b.start <= position < b.end for b in blocks)


def has_fence(text: str) -> bool:
    return _FENCE_RE.search(normalize_newlines(text)) is not None
