"""Coarse lexicon sentiment estimator.

A heuristic polarity signal, not a statistical sentiment model: each
positive term present adds a fixed increment, each negative term
subtracts it. A few matches saturate the signal quickly.
"""
from typing import Optional, Sequence

from .config import NEGATIVE_TERMS, POSITIVE_TERMS, SENTIMENT_INCREMENT


class SentimentEstimator:
    """Estimates message polarity in [-1.0, 1.0]."""

    def __init__(
        self,
        positive_terms: Optional[Sequence[str]] = None,
        negative_terms: Optional[Sequence[str]] = None,
        increment: float = SENTIMENT_INCREMENT,
    ):
        self.positive_terms = POSITIVE_TERMS if positive_terms is None else tuple(positive_terms)
        self.negative_terms = NEGATIVE_TERMS if negative_terms is None else tuple(negative_terms)
        self.increment = increment

    def estimate(self, text: str) -> float:
        """Score text polarity.

        Args:
            text: Message text

        Returns:
            -1.0 (maximally negative) to 1.0 (maximally positive), 0.0 neutral
        """
        normalized = text.casefold()
        positive = sum(1 for term in self.positive_terms if term in normalized)
        negative = sum(1 for term in self.negative_terms if term in normalized)

        # Count first, then scale, so 0.1 steps don't accumulate float drift
        score = round((positive - negative) * self.increment, 6)
        return min(max(score, -1.0), 1.0)
