"""Tests for configuration models and loading."""

from __future__ import annotations

import json

import pytest
import yaml
from pydantic import ValidationError

from colloquy.engine.config.settings import (
    AppConfig,
    ModelConfig,
    OrchestrationConfig,
    get_default_config,
    get_template_config,
)


def test_model_defaults_follow_provider() -> None:
    config = ModelConfig(provider="deepseek", api_key="k")

    assert config.model_name == "deepseek-chat"
    assert config.api_base_url == "https://api.deepseek.com/v1"
    assert config.resolved_display_name == "DeepSeek Chat"


def test_explicit_model_and_base_url() -> None:
    config = ModelConfig(
        provider="openai", model="gpt-4.1", base_url="https://proxy.internal/v1/"
    )

    assert config.model_name == "gpt-4.1"
    assert config.api_base_url == "https://proxy.internal/v1"
    assert config.resolved_display_name == "openai/gpt-4.1"


def test_unknown_provider_is_rejected() -> None:
    with pytest.raises(ValidationError):
        ModelConfig(provider="ollama")


def test_api_key_falls_back_to_environment(monkeypatch) -> None:
    monkeypatch.setenv("GEMINI_API_KEY", "from-env")

    assert ModelConfig(provider="gemini").resolved_api_key == "from-env"
    assert ModelConfig(provider="gemini", api_key="explicit").resolved_api_key == "explicit"


def test_availability_requires_a_key(monkeypatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    config = AppConfig(
        models={
            "keyed": ModelConfig(provider="openai", api_key="k"),
            "bare": ModelConfig(provider="openai"),
        }
    )

    assert list(config.available_models()) == ["keyed"]


def test_orchestration_defaults() -> None:
    config = OrchestrationConfig()

    assert config.recent_full_turns == 2
    assert config.history_truncate_chars == 2000
    assert config.max_search_iterations == 2
    assert config.max_queries_per_batch == 5
    assert config.summary_provider_preference == ["gemini", "deepseek"]
    assert config.input_budget_for("gemini") == 80000
    assert config.input_budget_for("openai") == 20000


def test_unknown_provider_uses_default_budget() -> None:
    config = OrchestrationConfig(default_input_token_budget=12345)

    assert config.input_budget_for("mistral") == 12345


def test_negative_search_iterations_rejected() -> None:
    with pytest.raises(ValidationError):
        OrchestrationConfig(max_search_iterations=-1)


def test_load_from_json(tmp_path) -> None:
    path = tmp_path / "colloquy_config.json"
    path.write_text(
        json.dumps(
            {
                "models": {"judge": {"provider": "claude", "api_key": "k"}},
                "orchestration": {"recent_full_turns": 3},
            }
        ),
        encoding="utf-8",
    )

    config = AppConfig.load_from_file(path)

    assert config.models["judge"].provider == "claude"
    assert config.orchestration.recent_full_turns == 3
    assert config.system.search.pages_to_fetch == 3


def test_load_requires_models(tmp_path) -> None:
    path = tmp_path / "empty.json"
    path.write_text(json.dumps({"models": {}}), encoding="utf-8")

    with pytest.raises(ValueError, match="at least one model"):
        AppConfig.load_from_file(path)


def test_load_missing_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        AppConfig.load_from_file(tmp_path / "absent.json")


def test_save_writes_yaml(tmp_path) -> None:
    path = tmp_path / "nested" / "config.yaml"
    config = AppConfig(models={"gpt": ModelConfig(provider="openai", display_name="GPT")})

    config.save_to_file(path)

    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert data["models"]["gpt"] == {"provider": "openai", "display_name": "GPT"}


def test_default_config_falls_back_to_template(tmp_path) -> None:
    config = get_default_config(tmp_path / "missing.json")

    assert set(config.models) == set(get_template_config().models)
    assert config.orchestration == OrchestrationConfig()
