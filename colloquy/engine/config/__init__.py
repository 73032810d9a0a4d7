"""Configuration models and loaders."""

from .settings import (
    AppConfig,
    ModelConfig,
    OrchestrationConfig,
    SearchConfig,
    SystemConfig,
    get_default_config,
    get_template_config,
)

__all__ = [
    "AppConfig",
    "ModelConfig",
    "OrchestrationConfig",
    "SearchConfig",
    "SystemConfig",
    "get_default_config",
    "get_template_config",
]
