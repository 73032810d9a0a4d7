"""Verdict detection strategies."""

from .base import BaseVerdictParser, Verdict
from .marker_parser import MarkerVerdictParser

__all__ = [
    "BaseVerdictParser",
    "Verdict",
    "MarkerVerdictParser",
]
