"""Base interface for verdict detection strategies."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Verdict:
    """The judge's terminal conclusion and per-hypothesis confidence."""

    conclusion: str
    confidence_scores: dict[str, float]


class BaseVerdictParser(ABC):
    """Recognises a judge's terminal verdict in free-form model output."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Parser name/identifier."""
        pass

    @abstractmethod
    def is_verdict(self, text: str) -> bool:
        """Whether text contains a complete verdict."""
        pass

    @abstractmethod
    def extract_scores(self, text: str) -> dict[str, float] | None:
        pass

    @abstractmethod
    def extract_conclusion(self, text: str) -> str | None:
        pass

    def parse(self, text: str) -> Verdict | None:
        """Return the verdict in text, or None when the judge has not concluded.

        A verdict needs the completion predicate to hold and at least one of
        scores or conclusion to be extracted. Missing pieces default to the
        raw text and an empty score mapping.
        """
        if not self.is_verdict(text):
            return None

        scores = self.extract_scores(text)
        conclusion = self.extract_conclusion(text)
        if scores is None and conclusion is None:
            return None

        return Verdict(
            conclusion=conclusion if conclusion is not None else text,
            confidence_scores=scores or {},
        )
