"""Model gateway and provider adapters."""

from .manager import ModelManager

__all__ = ["ModelManager"]
