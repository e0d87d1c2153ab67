# tests/unit/pipeline/test_unit_classifier.py — v1
"""Tests for pipeline/classifier.py — task type, project type, model choice."""

from __future__ import annotations

import pytest

from vibecode.config.settings import Settings
from vibecode.pipeline.classifier import TaskClassifier, detect_language


@pytest.fixture
def classifier() -> TaskClassifier:
    return TaskClassifier(
        Settings(_env_file=None, llm_default_provider="ollama", llm_default_model="llama3")
    )


class TestTaskType:
    @pytest.mark.parametrize(
        "task,expected",
        [
            ("Create a todo list", "code"),
            ("Напиши функцию сортировки", "code"),
            ("Explain how does the cache expire", "explanation"),
            ("Объясни, что делает этот метод", "explanation"),
            ("Translate the README to German", "translation"),
            ("Review the error handling", "analysis"),
            ("Why is the page slow?", "reasoning"),
            ("hello there", "reasoning"),
        ],
    )
    def test_keywords(self, classifier, task, expected):
        assert classifier.classify(task).task_type == expected

    def test_code_wins_over_later_types(self, classifier):
        assert classifier.classify("Explain and write the code").task_type == "code"

    def test_empty_task_is_code(self, classifier):
        assert classifier.classify(None).task_type == "code"
        assert classifier.classify("").task_type == "code"


class TestProjectType:
    @pytest.mark.parametrize(
        "task,expected",
        [
            ("Create a desktop application", "app"),
            ("Создай сайт-визитку", "website"),
            ("Build a landing page", "website"),
            ("Write a backup script", "script"),
            ("Write a sorting routine", None),
        ],
    )
    def test_keywords(self, classifier, task, expected):
        assert classifier.classify(task).project_type == expected


class TestModelSelection:
    def test_default_model(self, classifier):
        c = classifier.classify("Create a page")
        assert (c.provider, c.model, c.source) == ("ollama", "llama3", "default")

    def test_provider_and_model_override(self):
        settings = Settings(
            _env_file=None, llm_default_provider="ollama", llm_model_code="openai:gpt-4o"
        )
        c = TaskClassifier(settings).classify("Create a page")
        assert (c.provider, c.model, c.source) == ("openai", "gpt-4o", "task")

    def test_bare_model_override_keeps_provider(self):
        settings = Settings(
            _env_file=None, llm_default_provider="ollama", llm_model_reasoning="qwen2.5"
        )
        c = TaskClassifier(settings).classify("Why?")
        assert (c.provider, c.model, c.source) == ("ollama", "qwen2.5", "task")


class TestLanguage:
    def test_detect(self):
        assert detect_language("Создай сайт") == "ru"
        assert detect_language("Create a site") == "en"
        assert detect_language("") == "en"

    def test_classification_carries_language(self, classifier):
        assert classifier.classify("Создай сайт").language == "ru"
