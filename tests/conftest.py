# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides a temp project with intent documents, settings bound to it, and a
mocked model gateway. No network access: the gateway is always an AsyncMock.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from vibecode.config.settings import Settings

VISION_TEXT = (
    "# Vision\n\n"
    "A small todo web application. Users add, complete and delete tasks.\n"
    "Everything runs in the browser without a backend.\n"
)

ROADMAP_TEXT = (
    "# Roadmap\n\n"
    "1. Static page with a task list.\n"
    "2. Styling for completed tasks.\n"
    "3. Persistence in localStorage.\n"
)

HTML_BODY = (
    "<!DOCTYPE html>\n<html>\n<head><title>Todo</title>"
    '<link rel="stylesheet" href="style.css"></head>\n'
    '<body><ul id="tasks"></ul><script src="app.js"></script></body>\n</html>'
)

# Three explicit-header blocks: app.js, style.css, index.html.
SAMPLE_RESPONSE = (
    "Here is the project.\n\n"
    "```javascript\n// src/app.js\n"
    "const tasks = [];\nfunction addTask(title) { tasks.push({ title, done: false }); }\n"
    "```\n\n"
    "```css src/style.css\nbody { font-family: sans-serif; margin: 0; }\n```\n\n"
    "```html\n<!-- src/index.html -->\n" + HTML_BODY + "\n```\n"
)


# === FIXTURES: Project ===


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Temp project root with Vision.md and Roadmap.md."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "Vision.md").write_text(VISION_TEXT, encoding="utf-8")
    (root / "Roadmap.md").write_text(ROADMAP_TEXT, encoding="utf-8")
    return root


@pytest.fixture
def settings(project: Path) -> Settings:
    """Settings bound to the temp project, ignoring any local .env."""
    return Settings(
        _env_file=None,
        project_root=project,
        llm_default_provider="ollama",
        llm_default_model="llama3",
    )


# === FIXTURES: Model gateway ===


@pytest.fixture
def mock_gateway() -> MagicMock:
    """Gateway whose send() returns SAMPLE_RESPONSE."""
    gateway = MagicMock()
    gateway.send = AsyncMock(return_value=SAMPLE_RESPONSE)
    return gateway


@pytest.fixture
def sample_response() -> str:
    return SAMPLE_RESPONSE


@pytest.fixture
def html_body() -> str:
    return HTML_BODY
