# src/pipeline/prompt_builder.py — v1
"""Prompt builder for the prompt_generation stage.

Fills ``prompts/code_generation.txt`` with the intent documents, the task,
optional rule and template files and the output format instructions.
"""

from __future__ import annotations

import logging
from pathlib import Path

from vibecode.core.models import TaskClassification
from vibecode.logging.logger import get_logger

_PROMPT_PATH = Path(__file__).parent / "prompts" / "code_generation.txt"

DEFAULT_TASK = (
    "Create a minimal working skeleton of the project based on the Vision "
    "and Roadmap. Generate the main entry point, the UI structure and its logic."
)

_DOCUMENT_TITLES = {"vision": "Project Vision", "roadmap": "Project Roadmap"}

_PROJECT_NOTES = {
    "app": "This is an application project; keep an entry point and modules separate.",
    "website": "This is a website; produce index.html with its stylesheet and scripts.",
    "script": "This is a standalone script or tool; keep it to as few files as possible.",
}


class PromptBuilder:
    """Assemble the single prompt sent to the model."""

    def __init__(
        self,
        target_dir: str = "src",
        rules_file: Path | None = None,
        template_file: Path | None = None,
        template_path: Path = _PROMPT_PATH,
        logger: logging.Logger | None = None,
    ) -> None:
        self._target_dir = target_dir
        self._rules_file = rules_file
        self._template_file = template_file
        self._template_path = template_path
        self._prompt_template: str | None = None
        self._logger = logger or get_logger("prompt_builder")

    @property
    def prompt_template(self) -> str:
        if self._prompt_template is None:
            self._prompt_template = self._template_path.read_text(encoding="utf-8")
        return self._prompt_template

    def build(
        self,
        task: str | None,
        documents: dict[str, str],
        classification: TaskClassification | None = None,
    ) -> str:
        """Render the prompt. Missing documents are simply left out."""
        context_parts = []
        for kind, content in documents.items():
            title = _DOCUMENT_TITLES.get(kind, kind.capitalize())
            context_parts.append(f"## {title}\n{content.strip()}\n\n")

        task_text = (task or "").strip() or DEFAULT_TASK
        if classification is not None and classification.project_type:
            task_text += "\n\n" + _PROJECT_NOTES[classification.project_type]

        rules = self._read_optional(self._rules_file, "Rules")
        rules += self._read_optional(self._template_file, "Template")

        language_note = ""
        if classification is not None and classification.language == "ru":
            language_note = "Write explanations and code comments in Russian.\n"

        prompt = self.prompt_template.format(
            language_note=language_note,
            context="".join(context_parts),
            task=task_text,
            rules=rules,
            target_dir=self._target_dir,
        )
        self._logger.debug(
            "Prompt built: %d chars, documents=%s", len(prompt), ",".join(documents) or "-"
        )
        return prompt

    def _read_optional(self, path: Path | None, title: str) -> str:
        if path is None:
            return ""
        try:
            text = Path(path).read_text(encoding="utf-8").strip()
        except OSError as exc:
            self._logger.warning("Could not read %s file %s: %s", title.lower(), path, exc)
            return ""
        return f"## {title}\n{text}\n\n" if text else ""
