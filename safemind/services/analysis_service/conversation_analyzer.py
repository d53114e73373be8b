"""Conversation analyzer - aggregation over per-message results.

Builds a ConversationAnalysis from the ordered AnalysisResults of a
conversation: overall risk, escalation, sentiment trend and the
high-severity messages.
"""
import logging
from statistics import fmean
from typing import List, Optional, Sequence

from safemind.shared.models import (
    AnalysisResult,
    ConversationAnalysis,
    RiskLevel,
    SentimentTrend,
)
from .config import AnalysisConfig, RiskThresholds
from .scoring import clamp_score, determine_risk_level

logger = logging.getLogger(__name__)


class ConversationAnalyzer:
    """Generates conversation-level analysis from message results.

    Overall risk level uses the plain score thresholds with no
    critical-category override: a conversation whose mean score is low
    stays low even if one message was forced CRITICAL by a category.
    That message still appears in ``critical_messages``.
    """

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        thresholds: Optional[RiskThresholds] = None,
    ):
        self.config = config or AnalysisConfig()
        self.thresholds = thresholds or RiskThresholds()

    def analyze(self, results: Sequence[AnalysisResult]) -> ConversationAnalysis:
        """Aggregate ordered message results.

        Args:
            results: Per-message results in conversation order

        Returns:
            ConversationAnalysis for the whole sequence
        """
        scores = [result.risk_score for result in results]
        overall_risk_score = clamp_score(fmean(scores)) if scores else 0.0
        overall_risk_level = determine_risk_level(
            overall_risk_score, thresholds=self.thresholds
        )

        is_escalating = self._detect_escalation(scores)
        sentiment_trend = self._analyze_sentiment_trend(
            [result.sentiment for result in results]
        )
        critical_messages = [
            result for result in results if result.risk_level.is_elevated
        ]

        recommendations = self._generate_recommendations(
            overall_risk_level=overall_risk_level,
            is_escalating=is_escalating,
            sentiment_trend=sentiment_trend,
            critical_count=len(critical_messages),
        )

        analysis = ConversationAnalysis(
            message_count=len(results),
            overall_risk_score=overall_risk_score,
            overall_risk_level=overall_risk_level,
            is_escalating=is_escalating,
            sentiment_trend=sentiment_trend,
            critical_messages=critical_messages,
            recommendations=recommendations,
        )

        logger.info(
            "CONVERSATION_ANALYSIS_COMPLETED",
            extra={
                "message_count": analysis.message_count,
                "overall_risk_score": overall_risk_score,
                "overall_risk_level": overall_risk_level.value,
                "is_escalating": is_escalating,
                "sentiment_trend": sentiment_trend.value,
                "critical_message_count": len(critical_messages),
            }
        )
        return analysis

    def _split_windows(self, values: Sequence[float]):
        """Split into (older, recent) trailing windows."""
        window = self.config.trend_window
        recent = values[-window:]
        older = values[-2 * window:-window]
        return older, recent

    def _detect_escalation(self, scores: Sequence[float]) -> bool:
        """Recent mean risk well above the preceding window's mean."""
        if len(scores) < self.config.trend_window:
            return False

        older, recent = self._split_windows(scores)
        if not older:
            return False

        return fmean(recent) > fmean(older) * self.config.escalation_ratio

    def _analyze_sentiment_trend(self, sentiments: Sequence[float]) -> SentimentTrend:
        """Compare recent mean sentiment with the preceding window's mean.

        Both sums are divided by the full window length, so a short or
        empty older window counts its missing slots as neutral (0.0).
        """
        window = self.config.trend_window
        if len(sentiments) < window:
            return SentimentTrend.STABLE

        older, recent = self._split_windows(sentiments)
        recent_mean = sum(recent) / window
        older_mean = sum(older) / window

        if recent_mean > older_mean * self.config.improving_ratio:
            return SentimentTrend.IMPROVING
        elif recent_mean < older_mean * self.config.declining_ratio:
            return SentimentTrend.DECLINING
        else:
            return SentimentTrend.STABLE

    def _generate_recommendations(
        self,
        overall_risk_level: RiskLevel,
        is_escalating: bool,
        sentiment_trend: SentimentTrend,
        critical_count: int,
    ) -> List[str]:
        recommendations: List[str] = []

        if critical_count > 0:
            recommendations.append(
                f"{critical_count} critical message(s) detected - immediate review required"
            )

        if is_escalating:
            recommendations.append("Conversation risk is escalating - increase monitoring")

        if sentiment_trend is SentimentTrend.DECLINING:
            recommendations.append("Sentiment is declining - user may need support")

        if overall_risk_level.is_elevated:
            recommendations.append("High overall risk - consider intervention")

        return recommendations
