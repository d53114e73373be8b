"""Raw signal types produced by the analysis inputs.

Each message analysis gathers four independent signals: two external
classifier outcomes, lexicon matches and a coarse sentiment score.
These types carry those signals into the risk aggregator.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class KeywordTier(Enum):
    """Severity tier of a lexicon match."""
    CONCERN = "concern"     # Depression, hopelessness, isolation vocabulary
    CRITICAL = "critical"   # Direct self-harm / suicide vocabulary


@dataclass(frozen=True)
class KeywordMatch:
    """A lexicon term found in the message text."""
    term: str
    tier: KeywordTier

    @property
    def is_critical(self) -> bool:
        return self.tier is KeywordTier.CRITICAL

    def to_dict(self) -> Dict[str, str]:
        return {"term": self.term, "tier": self.tier.value}


@dataclass(frozen=True)
class ClassifierOutcome:
    """Output of one external classifier for one message.

    A successful call carries per-category confidences and the categories
    the classifier flagged itself. A failed call is represented by the
    unavailable sentinel: no scores, no flags, ``available=False``.
    """
    source: str
    scores: Dict[str, float] = field(default_factory=dict)
    flagged: List[str] = field(default_factory=list)
    available: bool = True

    @classmethod
    def unavailable(cls, source: str) -> "ClassifierOutcome":
        """Build the failure sentinel for a classifier."""
        return cls(source=source, available=False)

    @property
    def highest_score(self) -> float:
        """Highest confidence across all categories, clamped to 0.0-1.0."""
        if not self.scores:
            return 0.0
        return max(_clamp_confidence(score) for score in self.scores.values())

    def categories_above(self, threshold: float) -> List[str]:
        """Categories whose clamped confidence exceeds ``threshold``."""
        return [
            category for category, score in self.scores.items()
            if _clamp_confidence(score) > threshold
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "available": self.available,
            "scores": {k: round(_clamp_confidence(v), 4) for k, v in self.scores.items()},
            "flagged": list(self.flagged),
        }


def _clamp_confidence(value: float) -> float:
    # Classifiers promise 0.0-1.0; anything else is clamped, never raised. NaN is 0.
    value = float(value)
    if math.isnan(value):
        return 0.0
    return min(max(value, 0.0), 1.0)
