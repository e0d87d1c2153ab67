# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for model access, project layout, parser thresholds,
checkpoint/backup policy and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === MODEL GATEWAY ===
    llm_default_provider: str = "anthropic"
    llm_default_model: str = "claude-sonnet-4-20250514"
    llm_temperature: float = 0.7
    llm_max_tokens: int = 4000
    llm_retry_enabled: bool = True

    # Per-task model override, "provider:model" (e.g. LLM_MODEL_CODE=ollama:llama3)
    llm_model_code: str = ""
    llm_model_explanation: str = ""
    llm_model_analysis: str = ""
    llm_model_reasoning: str = ""
    llm_model_translation: str = ""

    # Provider credentials / endpoints
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    openai_base_url: str = ""
    ollama_base_url: str = "http://localhost:11434"
    lmstudio_base_url: str = "http://localhost:1234/v1"
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    llm_timeout_seconds: float = 120.0

    # === PROJECT LAYOUT ===
    project_root: Path = Path(".")
    target_dir: str = "src"
    cache_dir: str = "cache"
    backup_dir: str = "backups"
    debug_artifact_name: str = "debug-response.txt"

    # === INTENT DOCUMENTS ===
    vision_candidates: str = "Vision.md,docs/Vision.md,docs/ru/Vision.md"
    roadmap_candidates: str = (
        "Roadmap.md,ROADMAP_DORABOTKA.md,docs/Roadmap.md,docs/ru/Roadmap.md"
    )
    document_min_length: int = 100
    require_documents: bool = False

    # Plain-text prompt inputs
    rules_file: Path | None = None
    template_file: Path | None = None

    # === RESPONSE PARSER ===
    parser_min_content_chars: int = 10
    parser_html_min_chars: int = 50
    parser_css_min_chars: int = 10
    parser_script_min_chars: int = 20

    # === CHECKPOINT ===
    checkpoint_ttl_hours: float = 24.0
    checkpoint_preview_chars: int = 1000

    # === BACKUPS ===
    backup_label: str = "pre-run"
    backup_known_good_prefix: str = "working-version-"
    backup_retention_days: int = 7

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("llm_temperature")
    @classmethod
    def validate_temperature(cls, v: float) -> float:  # noqa: N805
        if not 0.0 <= v <= 2.0:
            raise ValueError("llm_temperature must be within [0, 2]")
        return v

    @field_validator("checkpoint_ttl_hours")
    @classmethod
    def validate_ttl(cls, v: float) -> float:  # noqa: N805
        if v <= 0:
            raise ValueError("checkpoint_ttl_hours must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field layout rules."""
        errors: list[str] = []

        for name in ("target_dir", "cache_dir", "backup_dir"):
            value = getattr(self, name)
            parts = Path(value).parts
            if Path(value).is_absolute() or ".." in parts:
                errors.append(f"{name.upper()} must be relative to PROJECT_ROOT")

        if self.target_dir in (self.cache_dir, self.backup_dir):
            errors.append("TARGET_DIR must differ from CACHE_DIR and BACKUP_DIR")

        if self.parser_min_content_chars < 1:
            errors.append("PARSER_MIN_CONTENT_CHARS must be >= 1")

        if self.backup_retention_days < 0:
            errors.append("BACKUP_RETENTION_DAYS must be >= 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def vision_candidates_list(self) -> list[str]:
        """Parse comma-separated Vision candidate paths."""
        return [p.strip() for p in self.vision_candidates.split(",") if p.strip()]

    @property
    def roadmap_candidates_list(self) -> list[str]:
        """Parse comma-separated Roadmap candidate paths."""
        return [p.strip() for p in self.roadmap_candidates.split(",") if p.strip()]

    @property
    def document_candidates(self) -> dict[str, list[str]]:
        """Candidate paths per document kind, in priority order."""
        return {
            "vision": self.vision_candidates_list,
            "roadmap": self.roadmap_candidates_list,
        }

    def task_model(self, task_type: str) -> str:
        """Return the raw per-task override ("provider:model" or "")."""
        return getattr(self, f"llm_model_{task_type}", "")


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
