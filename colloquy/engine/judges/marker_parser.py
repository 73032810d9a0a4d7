"""Marker-based verdict grammar shared with the judge prompts."""

from __future__ import annotations

import logging
import re
from typing import Mapping

from .base import BaseVerdictParser

logger = logging.getLogger(__name__)

_SCORES_MARKERS = (
    r"【置信度评分】|置信度评分[:：]|\[CONFIDENCE SCORES\]|Confidence Scores?[:：]"
    r"|^#{1,4}[ \t]*\**[ \t]*(?:置信度评分|Confidence Scores?)[ \t]*\**[ \t]*$"
)

SCORES_MARKER = re.compile(_SCORES_MARKERS, re.IGNORECASE | re.MULTILINE)

# Section ends at the next bracketed marker, a heading, a blank line or end of text.
SCORES_SECTION = re.compile(
    r"(?:" + _SCORES_MARKERS + r")"
    r"\s*(.*?)"
    r"(?=【|^\[|#{1,4}\s|\n[ \t]*\n|\Z)",
    re.IGNORECASE | re.DOTALL | re.MULTILINE,
)

SCORE_LINE = re.compile(r"[-•*]\s*\**(.+?)\**[:：]\s*\**?(\d*\.?\d+(?:[eE][-+]?\d+)?)\**?")

_HEADING = r"^#{{1,4}}\s*\**\s*{title}\s*\**"

CONCLUSION_MARKERS: tuple[re.Pattern[str], ...] = (
    re.compile(r"【最终结论】"),
    re.compile(r"【最终裁决】"),
    re.compile(r"\[FINAL CONCLUSION\]", re.IGNORECASE),
    re.compile(r"\[FINAL VERDICT\]", re.IGNORECASE),
    re.compile(_HEADING.format(title="最终裁决"), re.MULTILINE),
    re.compile(_HEADING.format(title="最终结论"), re.MULTILINE),
    re.compile(_HEADING.format(title="Final Verdict"), re.MULTILINE | re.IGNORECASE),
    re.compile(_HEADING.format(title="Final Conclusion"), re.MULTILINE | re.IGNORECASE),
)


class MarkerVerdictParser(BaseVerdictParser):
    """Parses bracketed or heading-style verdict markers in English and Chinese.

    The completion predicate requires both a scores marker and a conclusion
    marker. A judge that only mentions a final verdict in passing is not
    treated as having delivered one.
    """

    @property
    def name(self) -> str:
        return "marker"

    def has_scores_marker(self, text: str) -> bool:
        return SCORES_MARKER.search(text) is not None

    def has_conclusion_marker(self, text: str) -> bool:
        return any(marker.search(text) for marker in CONCLUSION_MARKERS)

    def is_verdict(self, text: str) -> bool:
        return self.has_scores_marker(text) and self.has_conclusion_marker(text)

    def extract_scores(self, text: str) -> dict[str, float] | None:
        for section in SCORES_SECTION.finditer(text):
            scores = self._parse_score_lines(section.group(1))
            if scores:
                return scores
        return None

    def _parse_score_lines(self, section: str) -> dict[str, float]:
        scores: dict[str, float] = {}
        for line in section.splitlines():
            match = SCORE_LINE.search(line)
            if not match:
                continue
            label = match.group(1).strip()
            score = float(match.group(2))
            if not 0.0 <= score <= 1.0:
                logger.debug(f"Ignoring out-of-range score for '{label}': {score}")
                continue
            scores[label] = score
        return scores

    def extract_conclusion(self, text: str) -> str | None:
        for marker in CONCLUSION_MARKERS:
            match = marker.search(text)
            if match:
                return text[match.end():].strip()
        return None

    @staticmethod
    def format_scores(scores: Mapping[str, float]) -> str:
        """Render scores as the canonical bullet block the parser reads back."""
        return "\n".join(f"- {label}: {score}" for label, score in scores.items())
