"""Round orchestration engine for judge-led multi-model discussions."""

__version__ = "0.1.0"
