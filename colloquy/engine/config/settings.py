"""Configuration settings and data models."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

PROVIDER_DEFAULTS: dict[str, dict[str, str]] = {
    "openai": {
        "model": "gpt-4o",
        "base_url": "https://api.openai.com/v1",
        "api_key_env": "OPENAI_API_KEY",
        "display_name": "OpenAI GPT-4o",
    },
    "deepseek": {
        "model": "deepseek-chat",
        "base_url": "https://api.deepseek.com/v1",
        "api_key_env": "DEEPSEEK_API_KEY",
        "display_name": "DeepSeek Chat",
    },
    "gemini": {
        "model": "gemini-1.5-pro",
        "base_url": "https://generativelanguage.googleapis.com/v1beta",
        "api_key_env": "GEMINI_API_KEY",
        "display_name": "Google Gemini 1.5 Pro",
    },
    "claude": {
        "model": "claude-3-5-sonnet-20241022",
        "base_url": "https://api.anthropic.com/v1",
        "api_key_env": "ANTHROPIC_API_KEY",
        "display_name": "Anthropic Claude 3.5 Sonnet",
    },
}

VALID_PROVIDERS = frozenset(PROVIDER_DEFAULTS)


class ModelConfig(BaseModel):
    """Configuration for one model a discussion can seat as judge or guest."""

    provider: str = Field(..., description="Model provider (openai, deepseek, gemini, claude)")
    model: str | None = Field(
        default=None, description="Provider model id; defaults per provider when omitted"
    )
    api_key: str | None = Field(
        default=None, description="API key (falls back to the provider's environment variable)"
    )
    base_url: str | None = Field(default=None, description="Override for the provider API base URL")
    display_name: str | None = Field(
        default=None, description="Name shown in transcripts (e.g. 'OpenAI GPT-4o')"
    )
    max_tokens: int = Field(default=4096, description="Maximum output tokens per response")
    timeout: float = Field(default=120.0, description="Request timeout in seconds")
    max_retries: int = Field(default=2, description="Retries performed by the provider SDK")

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        if v not in VALID_PROVIDERS:
            raise ValueError(f"Provider must be one of: {sorted(VALID_PROVIDERS)}")
        return v

    @property
    def model_name(self) -> str:
        return self.model or PROVIDER_DEFAULTS[self.provider]["model"]

    @property
    def api_base_url(self) -> str:
        return (self.base_url or PROVIDER_DEFAULTS[self.provider]["base_url"]).rstrip("/")

    @property
    def resolved_api_key(self) -> str | None:
        env_name = PROVIDER_DEFAULTS[self.provider]["api_key_env"]
        return self.api_key or os.getenv(env_name) or None

    @property
    def resolved_display_name(self) -> str:
        if self.display_name:
            return self.display_name
        if self.model is None:
            return PROVIDER_DEFAULTS[self.provider]["display_name"]
        return f"{self.provider}/{self.model}"

    @property
    def is_available(self) -> bool:
        """True when an API key can be resolved for this model."""
        return bool(self.resolved_api_key)


class OrchestrationConfig(BaseModel):
    """Tunable constants of the round orchestration engine."""

    recent_full_turns: int = Field(
        default=2, ge=0, description="Most recent turns always sent at full length"
    )
    history_truncate_chars: int = Field(
        default=2000, gt=0, description="Length older turns are truncated to without a summary"
    )
    summary_min_chars: int = Field(
        default=800, ge=0, description="Turns shorter than this are never summarized"
    )
    summary_max_tokens: int = Field(default=2000, description="Output budget of a summary call")
    summary_temperature: float = Field(default=0.3)
    summary_provider_preference: list[str] = Field(
        default=["gemini", "deepseek"],
        description="Providers tried first when picking a summarization model",
    )
    max_search_iterations: int = Field(
        default=2, ge=0, description="Search batch + regeneration cycles per turn"
    )
    max_queries_per_batch: int = Field(default=5, gt=0)
    search_results_per_query: int = Field(default=5, gt=0)
    fetch_page_content: bool = Field(default=True)
    judge_temperature: float = Field(default=0.7)
    guest_temperature: float = Field(default=0.8)
    max_rounds: int = Field(
        default=10, gt=0, description="Round ceiling applied by callers driving a discussion"
    )
    max_log_entries: int = Field(default=500, gt=0)
    input_token_budgets: dict[str, int] = Field(
        default={"openai": 20000, "deepseek": 50000, "gemini": 80000, "claude": 80000},
        description="Conservative per-provider input ceilings, leaving room for output",
    )
    default_input_token_budget: int = Field(default=20000, gt=0)

    def input_budget_for(self, provider: str) -> int:
        return self.input_token_budgets.get(provider, self.default_input_token_budget)


class SearchConfig(BaseModel):
    """Web search configuration."""

    region: str = Field(default="wt-wt", description="DuckDuckGo region code")
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
        )
    )
    timeout: float = Field(default=15.0, description="Search request timeout in seconds")
    page_timeout: float = Field(default=10.0, description="Per-page fetch timeout in seconds")
    max_page_chars: int = Field(default=3000, description="Cap on extracted page text")
    pages_to_fetch: int = Field(default=3, description="Hits whose page text is fetched")


class SystemConfig(BaseModel):
    """System-wide configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    search: SearchConfig = Field(default_factory=SearchConfig)


class AppConfig(BaseModel):
    """Complete application configuration."""

    models: dict[str, ModelConfig]
    orchestration: OrchestrationConfig = Field(default_factory=OrchestrationConfig)
    system: SystemConfig = Field(default_factory=SystemConfig)

    @classmethod
    def load_from_file(cls, config_path: Path) -> "AppConfig":
        """Load configuration from JSON file."""
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        if not data.get("models"):
            raise ValueError("Config must include at least one model in 'models' section")

        config = cls(**data)
        logger.info(
            "Loaded config from %s with models: %s", config_path, ", ".join(config.models)
        )
        return config

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(
                self.model_dump(exclude_unset=True),
                f,
                default_flow_style=False,
                indent=2,
                allow_unicode=True,
            )

    def available_models(self) -> dict[str, ModelConfig]:
        """Configured models that have an API key."""
        return {key: cfg for key, cfg in self.models.items() if cfg.is_available}


def get_default_config(config_path: Path = Path("colloquy_config.json")) -> AppConfig:
    """Load configuration from colloquy_config.json, falling back to the template."""
    if config_path.exists():
        return AppConfig.load_from_file(config_path)
    logger.info("No config at %s, using template configuration", config_path)
    return get_template_config()


def get_template_config() -> AppConfig:
    """Get template configuration for config file generation."""
    return AppConfig(
        models={
            "openai": ModelConfig(provider="openai"),
            "deepseek": ModelConfig(provider="deepseek"),
            "gemini": ModelConfig(provider="gemini"),
            "claude": ModelConfig(provider="claude"),
        },
        orchestration=OrchestrationConfig(),
        system=SystemConfig(log_level="INFO", search=SearchConfig()),
    )
