"""Risk aggregator - combines independent signals into one assessment.

Signals per message:
- Classifier A (Perspective): general toxicity
- Classifier B (OpenAI moderation): safety categories
- Lexicon: concern / critical vocabulary
- Sentiment: coarse polarity

The two classifiers are network calls and run concurrently. Either may
fail or time out; a failed classifier contributes a zero component and
is listed in ``details.unavailable_classifiers``. The analysis always
completes with whatever signals succeeded.
"""
import asyncio
import logging
import time
from typing import List, Optional, Sequence

from safemind.shared.models import (
    AnalysisDetails,
    AnalysisResult,
    ClassifierOutcome,
    ConversationAnalysis,
    KeywordMatch,
    RiskLevel,
    SafetyFlags,
)
from safemind.shared.utils import hash_text_for_audit
from safemind.services.classifier_service import BaseClassifier
from .config import (
    CRITICAL_CATEGORIES,
    HATE_CATEGORIES,
    SELF_HARM_CATEGORIES,
    SEXUAL_CATEGORIES,
    VIOLENCE_CATEGORIES,
    AnalysisConfig,
    RiskThresholds,
)
from .conversation_analyzer import ConversationAnalyzer
from .keyword_detector import KeywordDetector
from .scoring import clamp_score, determine_risk_level
from .sentiment import SentimentEstimator

logger = logging.getLogger(__name__)


class RiskAggregator:
    """Content-risk aggregation engine.

    Collaborators are injected; the aggregator keeps no state between
    calls, so concurrent analyses never interfere.
    """

    def __init__(
        self,
        toxicity_classifier: BaseClassifier,
        moderation_classifier: BaseClassifier,
        config: Optional[AnalysisConfig] = None,
        thresholds: Optional[RiskThresholds] = None,
        keyword_detector: Optional[KeywordDetector] = None,
        sentiment_estimator: Optional[SentimentEstimator] = None,
        conversation_analyzer: Optional[ConversationAnalyzer] = None,
    ):
        """Initialize aggregator with its collaborators.

        Args:
            toxicity_classifier: Classifier A (general toxicity)
            moderation_classifier: Classifier B (safety categories)
            config: Weights, thresholds and timeouts
            thresholds: Risk level boundaries
            keyword_detector: Lexicon matcher (injected for testing)
            sentiment_estimator: Polarity estimator (injected for testing)
            conversation_analyzer: Conversation aggregation (injected for testing)
        """
        self.toxicity_classifier = toxicity_classifier
        self.moderation_classifier = moderation_classifier
        self.config = config or AnalysisConfig()
        self.thresholds = thresholds or RiskThresholds()
        self.keyword_detector = keyword_detector or KeywordDetector()
        self.sentiment_estimator = sentiment_estimator or SentimentEstimator()
        self.conversation_analyzer = conversation_analyzer or ConversationAnalyzer(
            config=self.config, thresholds=self.thresholds
        )

        logger.info(
            "RISK_AGGREGATOR_INITIALIZED",
            extra={
                "engine_version": self.config.engine_version,
                "toxicity_classifier": toxicity_classifier.name,
                "moderation_classifier": moderation_classifier.name,
                "classifier_timeout_seconds": self.config.classifier_timeout_seconds,
            }
        )

    async def analyze_message(self, text: str) -> AnalysisResult:
        """Analyze a single message.

        Args:
            text: Message text (validated by the caller; empty text is
                tolerated and yields a low-risk result)

        Returns:
            AnalysisResult with score, level, flags and suggested actions

        Logs:
            - ANALYSIS_STARTED: Before signals are gathered
            - CLASSIFIER_UNAVAILABLE: Per failed or timed-out classifier
            - ANALYSIS_ALERT_REQUIRED: If the result requires an alert
            - ANALYSIS_COMPLETED: After the result is built
        """
        start_time = time.perf_counter()
        text_hash = hash_text_for_audit(text)

        logger.info(
            "ANALYSIS_STARTED",
            extra={"text_hash": text_hash, "text_length": len(text)}
        )

        classifier_calls = asyncio.gather(
            self._run_classifier(self.toxicity_classifier, text, text_hash),
            self._run_classifier(self.moderation_classifier, text, text_hash),
        )
        # Local signals never suspend; compute them while the calls are in flight
        keywords = self.keyword_detector.detect(text)
        sentiment = self.sentiment_estimator.estimate(text)
        toxicity, moderation = await classifier_calls

        risk_score = self._calculate_risk_score(toxicity, moderation, keywords, sentiment)
        critical_flags = [c for c in moderation.flagged if c in CRITICAL_CATEGORIES]
        risk_level = determine_risk_level(risk_score, critical_flags, self.thresholds)

        flags = self._derive_flags(toxicity, moderation, keywords)
        categories = self._collect_categories(toxicity, moderation)
        requires_alert = risk_level.is_elevated or flags.self_harm
        suggested_actions = self._generate_suggested_actions(flags, risk_level)

        unavailable = [o.source for o in (toxicity, moderation) if not o.available]

        result = AnalysisResult(
            text=text,
            risk_score=risk_score,
            risk_level=risk_level,
            flags=flags,
            details=AnalysisDetails(
                toxicity=toxicity,
                moderation=moderation,
                keywords=keywords,
                sentiment=sentiment,
                unavailable_classifiers=unavailable,
            ),
            requires_alert=requires_alert,
            categories=categories,
            suggested_actions=suggested_actions,
        )

        latency_ms = (time.perf_counter() - start_time) * 1000

        if requires_alert:
            logger.warning(
                "ANALYSIS_ALERT_REQUIRED",
                extra={
                    "text_hash": text_hash,
                    "risk_score": risk_score,
                    "risk_level": risk_level.value,
                    "critical_flags": critical_flags,
                    "self_harm": flags.self_harm,
                }
            )

        logger.info(
            "ANALYSIS_COMPLETED",
            extra={
                "text_hash": text_hash,
                "risk_score": risk_score,
                "risk_level": risk_level.value,
                "keyword_matches": len(keywords),
                "sentiment": sentiment,
                "unavailable_classifiers": unavailable,
                "requires_alert": requires_alert,
                "latency_ms": latency_ms,
            }
        )

        return result

    async def analyze_conversation(self, texts: Sequence[str]) -> ConversationAnalysis:
        """Analyze an ordered conversation.

        Messages are analyzed concurrently (bounded by
        ``max_concurrent_messages``); results keep the input order.

        Args:
            texts: Message texts in conversation order

        Returns:
            ConversationAnalysis over the per-message results
        """
        semaphore = asyncio.Semaphore(self.config.max_concurrent_messages)

        async def analyze_bounded(text: str) -> AnalysisResult:
            async with semaphore:
                return await self.analyze_message(text)

        logger.info(
            "CONVERSATION_ANALYSIS_STARTED",
            extra={"message_count": len(texts)}
        )

        results = await asyncio.gather(*(analyze_bounded(text) for text in texts))
        return self.conversation_analyzer.analyze(results)

    async def _run_classifier(
        self,
        classifier: BaseClassifier,
        text: str,
        text_hash: str,
    ) -> ClassifierOutcome:
        """Call one classifier, substituting the unavailable sentinel on failure."""
        try:
            return await asyncio.wait_for(
                classifier.classify(text),
                timeout=self.config.classifier_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "CLASSIFIER_UNAVAILABLE",
                extra={
                    "classifier": classifier.name,
                    "text_hash": text_hash,
                    "reason": "timeout",
                    "timeout_seconds": self.config.classifier_timeout_seconds,
                }
            )
        except Exception as e:
            logger.warning(
                "CLASSIFIER_UNAVAILABLE",
                extra={
                    "classifier": classifier.name,
                    "text_hash": text_hash,
                    "reason": "error",
                    "error": str(e),
                    "error_type": type(e).__name__,
                }
            )
        return ClassifierOutcome.unavailable(classifier.name)

    def _calculate_risk_score(
        self,
        toxicity: ClassifierOutcome,
        moderation: ClassifierOutcome,
        keywords: List[KeywordMatch],
        sentiment: float,
    ) -> float:
        """Weighted composite of the four 0-100 components.

        Args:
            toxicity: Classifier A outcome
            moderation: Classifier B outcome
            keywords: Lexicon matches
            sentiment: Polarity in [-1, 1]

        Returns:
            Composite risk score (0.0-100.0)
        """
        toxicity_component = toxicity.highest_score * 100
        moderation_component = moderation.highest_score * 100

        if any(match.is_critical for match in keywords):
            keyword_component = 100.0
        else:
            concern_terms = {match.term for match in keywords}
            keyword_component = min(
                100.0, len(concern_terms) * self.config.keyword_points_per_match
            )

        # -1 (most negative) maps to 100, +1 to 0
        sentiment_component = (1 - sentiment) * 50

        composite = (
            toxicity_component * self.config.toxicity_weight +
            moderation_component * self.config.moderation_weight +
            keyword_component * self.config.keyword_weight +
            sentiment_component * self.config.sentiment_weight
        )
        return clamp_score(composite)

    def _derive_flags(
        self,
        toxicity: ClassifierOutcome,
        moderation: ClassifierOutcome,
        keywords: List[KeywordMatch],
    ) -> SafetyFlags:
        flagged = set(moderation.flagged)
        return SafetyFlags(
            toxicity=toxicity.highest_score > self.config.toxicity_flag_threshold,
            self_harm=bool(flagged & SELF_HARM_CATEGORIES),
            violence=bool(flagged & VIOLENCE_CATEGORIES),
            hate=bool(flagged & HATE_CATEGORIES),
            sexual=bool(flagged & SEXUAL_CATEGORIES),
            mental_health_concern=bool(keywords),
        )

    def _collect_categories(
        self,
        toxicity: ClassifierOutcome,
        moderation: ClassifierOutcome,
    ) -> List[str]:
        """Toxicity attributes over threshold, then moderation flags; first seen wins."""
        categories = toxicity.categories_above(self.config.toxicity_flag_threshold)
        categories.extend(moderation.flagged)
        return list(dict.fromkeys(categories))

    def _generate_suggested_actions(
        self,
        flags: SafetyFlags,
        risk_level: RiskLevel,
    ) -> List[str]:
        """Build suggested actions; blocks append independently, no dedup."""
        actions: List[str] = []

        if flags.self_harm:
            actions.append("IMMEDIATE: Contact crisis intervention services")
            actions.append("Notify parent/guardian immediately")
            actions.append("Provide crisis hotline resources")

        if flags.violence:
            actions.append("Assess immediate danger to self or others")
            actions.append("Notify appropriate authorities if threat detected")

        if flags.mental_health_concern:
            actions.append("Consider reaching out to mental health resources")
            actions.append("Monitor conversation closely")

        if risk_level.is_elevated:
            actions.append("Send alert to trusted contacts")
            actions.append("Increase monitoring frequency")

        return actions
