"""OpenAI Moderation API integration - safety-category classifier.

Category names are the API's slash-separated names (``self-harm/intent``,
``violence/graphic``, ...). They are a contract with the moderation API
and are kept verbatim.
"""
import logging
import math
import time
from typing import Any, Dict, List, Optional

import openai

from safemind.shared.models import ClassifierOutcome
from .base import BaseClassifier, ClassifierConfig, ClassifierError, ClassifierProvider

logger = logging.getLogger(__name__)

DEFAULT_MODERATION_MODEL = "omni-moderation-latest"


class ModerationClassifier(BaseClassifier):
    """Safety-category classifier backed by the OpenAI moderation endpoint."""

    def __init__(
        self,
        api_key: str,
        model_name: Optional[str] = None,
        timeout_seconds: float = 10.0,
        client: Optional[Any] = None,
    ):
        """Initialize moderation classifier.

        Args:
            api_key: OpenAI API key
            model_name: Moderation model (default: omni-moderation-latest)
            timeout_seconds: Request timeout
            client: Pre-built AsyncOpenAI client (injected for testing)
        """
        super().__init__(ClassifierConfig(
            provider=ClassifierProvider.OPENAI_MODERATION,
            api_key=api_key,
            model_name=model_name or DEFAULT_MODERATION_MODEL,
            timeout_seconds=timeout_seconds,
        ))
        self._client = client

    async def classify(self, text: str) -> ClassifierOutcome:
        """Run text through the moderation endpoint.

        Args:
            text: Message text

        Returns:
            ClassifierOutcome keyed by moderation category

        Raises:
            ClassifierError: On any SDK error or an empty result set
        """
        start_time = time.time()

        try:
            if self._client is not None:
                response = await self._moderate(self._client, text)
            else:
                # One client per call: each request may run on its own event loop
                async with openai.AsyncOpenAI(
                    api_key=self.config.api_key,
                    timeout=self.config.timeout_seconds,
                    max_retries=0,
                ) as client:
                    response = await self._moderate(client, text)
        except openai.OpenAIError as e:
            raise ClassifierError(self.config.provider, f"request failed: {e}") from e

        if not response.results:
            raise ClassifierError(self.config.provider, "malformed response: no results")

        result = response.results[0]
        outcome = self.build_outcome(
            categories=result.categories.model_dump(by_alias=True),
            category_scores=result.category_scores.model_dump(by_alias=True),
        )

        logger.info(
            "MODERATION_CLASSIFICATION_COMPLETED",
            extra={
                "model": self.config.model_name,
                "latency_ms": (time.time() - start_time) * 1000,
                "flagged": result.flagged,
                "flagged_count": len(outcome.flagged),
            }
        )
        return outcome

    async def _moderate(self, client: Any, text: str) -> Any:
        return await client.moderations.create(
            input=text,
            model=self.config.model_name,
        )

    def build_outcome(
        self,
        categories: Dict[str, Optional[bool]],
        category_scores: Dict[str, Optional[float]],
    ) -> ClassifierOutcome:
        """Build a ClassifierOutcome from moderation category maps.

        Categories the model did not score (null entries) are skipped.

        Raises:
            ClassifierError: If a score is NaN or infinite
        """
        scores: Dict[str, float] = {}
        for category, score in category_scores.items():
            if score is None:
                continue
            score = float(score)
            if not math.isfinite(score):
                raise ClassifierError(
                    self.config.provider,
                    f"non-finite score for {category}",
                )
            scores[category] = score
        flagged: List[str] = [
            category for category, is_flagged in categories.items() if is_flagged
        ]
        return ClassifierOutcome(source=self.name, scores=scores, flagged=flagged)
