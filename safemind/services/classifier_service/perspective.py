"""Perspective API integration - general toxicity classifier.

Google's Perspective API scores text against a fixed set of attributes.
Attributes scoring above FLAG_THRESHOLD are reported as flagged.
"""
import asyncio
import logging
import math
import time
from typing import Any, Dict, List, Optional

import aiohttp

from safemind.shared.models import ClassifierOutcome
from .base import BaseClassifier, ClassifierConfig, ClassifierError, ClassifierProvider

logger = logging.getLogger(__name__)

PERSPECTIVE_API_URL = "https://commentanalyzer.googleapis.com/v1alpha1/comments:analyze"

PERSPECTIVE_ATTRIBUTES = (
    "TOXICITY",
    "SEVERE_TOXICITY",
    "IDENTITY_ATTACK",
    "INSULT",
    "PROFANITY",
    "THREAT",
    "SEXUALLY_EXPLICIT",
    "FLIRTATION",
)


class PerspectiveClassifier(BaseClassifier):
    """Toxicity classifier backed by the Perspective API."""

    FLAG_THRESHOLD = 0.7

    def __init__(self, api_key: str, timeout_seconds: float = 10.0, endpoint: Optional[str] = None):
        """Initialize Perspective classifier.

        Args:
            api_key: Perspective API key
            timeout_seconds: Total request timeout
            endpoint: Override for the analyze endpoint (testing/proxies)
        """
        super().__init__(ClassifierConfig(
            provider=ClassifierProvider.PERSPECTIVE,
            api_key=api_key,
            endpoint=endpoint or PERSPECTIVE_API_URL,
            timeout_seconds=timeout_seconds,
        ))

    def _build_request(self, text: str) -> Dict[str, Any]:
        return {
            "comment": {"text": text},
            "requestedAttributes": {attribute: {} for attribute in PERSPECTIVE_ATTRIBUTES},
            "languages": ["en"],
        }

    async def classify(self, text: str) -> ClassifierOutcome:
        """Score text against the Perspective attributes.

        Args:
            text: Message text

        Returns:
            ClassifierOutcome keyed by attribute name

        Raises:
            ClassifierError: On transport error, non-200 status or bad payload
        """
        start_time = time.time()

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.config.endpoint,
                    params={"key": self.config.api_key},
                    json=self._build_request(text),
                    timeout=aiohttp.ClientTimeout(total=self.config.timeout_seconds),
                ) as response:
                    if response.status != 200:
                        raise ClassifierError(
                            self.config.provider,
                            f"unexpected status {response.status}",
                        )
                    payload = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise ClassifierError(self.config.provider, f"request failed: {e}") from e

        outcome = self.parse_response(payload)

        logger.info(
            "PERSPECTIVE_CLASSIFICATION_COMPLETED",
            extra={
                "latency_ms": (time.time() - start_time) * 1000,
                "attribute_count": len(outcome.scores),
                "flagged_count": len(outcome.flagged),
            }
        )
        return outcome

    def parse_response(self, payload: Any) -> ClassifierOutcome:
        """Turn a Perspective analyze response into a ClassifierOutcome.

        Raises:
            ClassifierError: If the payload does not carry finite attribute scores
        """
        if not isinstance(payload, dict) or not isinstance(payload.get("attributeScores"), dict):
            raise ClassifierError(self.config.provider, "malformed response: missing attributeScores")

        scores: Dict[str, float] = {}
        flagged: List[str] = []
        for attribute, result in payload["attributeScores"].items():
            try:
                score = float(result["summaryScore"]["value"])
            except (KeyError, TypeError, ValueError) as e:
                raise ClassifierError(
                    self.config.provider,
                    f"malformed score for {attribute}",
                ) from e
            if not math.isfinite(score):
                raise ClassifierError(
                    self.config.provider,
                    f"non-finite score for {attribute}",
                )
            scores[attribute] = score
            if score > self.FLAG_THRESHOLD:
                flagged.append(attribute)

        return ClassifierOutcome(source=self.name, scores=scores, flagged=flagged)
