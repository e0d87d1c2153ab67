# src/pipeline/classifier.py — v1
"""Task classifier for the classification stage.

Keyword matching decides the task type and project type; the task type
selects the model through the per-task override map in settings.
"""

from __future__ import annotations

import logging
import re

from vibecode.config.settings import Settings
from vibecode.core.models import TaskClassification
from vibecode.logging.logger import get_logger

# Checked in order; first hit wins.
TASK_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("code", (
        "создать", "создай", "написать", "напиши", "код", "функция", "класс",
        "модуль", "файл", "generate", "create", "write", "code", "function",
        "class", "implement", "build",
    )),
    ("explanation", (
        "объясни", "что делает", "как работает", "explain", "what does",
        "how does", "describe",
    )),
    ("translation", ("переведи", "перевод", "translate")),
    ("analysis", ("проанализируй", "анализ", "analyze", "analysis", "review")),
    ("reasoning", (
        "почему", "зачем", "как лучше", "why", "how to", "best way", "should",
    )),
)

PROJECT_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("app", (
        "приложение", "app", "application", "desktop", "электрон", "electron",
        "node.js", "nodejs",
    )),
    ("website", (
        "сайт", "website", "веб", "web", "html", "страница", "page", "react",
        "vue", "angular",
    )),
    ("script", ("скрипт", "script", "утилита", "utility", "tool", "инструмент")),
)

_CYRILLIC_RE = re.compile(r"[а-яёА-ЯЁ]")


def detect_language(text: str) -> str:
    return "ru" if _CYRILLIC_RE.search(text or "") else "en"


def _first_match(text: str, table: tuple[tuple[str, tuple[str, ...]], ...]) -> str | None:
    lowered = text.lower()
    for label, keywords in table:
        if any(keyword in lowered for keyword in keywords):
            return label
    return None


class TaskClassifier:
    """Classify a task and pick the provider/model that serves it."""

    def __init__(self, settings: Settings, logger: logging.Logger | None = None) -> None:
        self._settings = settings
        self._logger = logger or get_logger("classifier")

    def classify(self, task: str | None) -> TaskClassification:
        text = task or ""
        task_type = _first_match(text, TASK_KEYWORDS) if text else "code"
        task_type = task_type or "reasoning"
        project_type = _first_match(text, PROJECT_KEYWORDS)

        provider = self._settings.llm_default_provider
        model = self._settings.llm_default_model
        source = "default"
        override = self._settings.task_model(task_type).strip()
        if override:
            source = "task"
            if ":" in override:
                provider, _, model = override.partition(":")
            else:
                model = override

        classification = TaskClassification(
            task_type=task_type,
            project_type=project_type,
            provider=provider,
            model=model,
            source=source,
            language=detect_language(text),
        )
        self._logger.info(
            "Task classified as %s (project=%s), model %s/%s [%s]",
            task_type, project_type or "-", provider, model, source,
        )
        return classification
