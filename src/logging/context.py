# src/logging/context.py — v2
"""Contextual logging support: attach run_id, stage and component to records.

The orchestrator sets the run and stage; components set their own name.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)
_component: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "component", default=None
)
_project: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "project", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    run_id: str | None = None
    stage: str | None = None
    component: str | None = None
    project: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        run_id=_run_id.get(),
        stage=_stage.get(),
        component=_component.get(),
        project=_project.get(),
    )


def set_run_context(run_id: str, project: str | None = None) -> None:
    """Set run-level context (called once per pipeline invocation)."""
    _run_id.set(run_id)
    _project.set(project)


def set_stage_context(stage: str, component: str | None = None) -> None:
    """Set stage-level context (called on every stage transition)."""
    _stage.set(stage)
    if component is not None:
        _component.set(component)


def clear_context() -> None:
    """Reset all context variables."""
    _run_id.set(None)
    _stage.set(None)
    _component.set(None)
    _project.set(None)
