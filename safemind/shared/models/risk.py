"""Risk level and analysis result domain models.

This file defines the core enums and data structures for risk assessment.
Message-level results are produced by the RiskAggregator; conversation-level
results by the ConversationAnalyzer.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List

from .signals import ClassifierOutcome, KeywordMatch


class RiskLevel(Enum):
    """Four-tier risk classification.

    Thresholds on the 0-100 composite score: low < 40 <= medium < 60
    <= high < 80 <= critical. Critical safety categories force CRITICAL
    for single messages regardless of score.
    """
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def is_elevated(self) -> bool:
        """High or critical - the levels that warrant a guardian alert."""
        return self in (RiskLevel.HIGH, RiskLevel.CRITICAL)


class SentimentTrend(Enum):
    """Direction of sentiment across the tail of a conversation."""
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


@dataclass(frozen=True)
class SafetyFlags:
    """Boolean safety flags, always recomputed from source signals."""
    toxicity: bool = False
    self_harm: bool = False
    violence: bool = False
    hate: bool = False
    sexual: bool = False
    mental_health_concern: bool = False

    def to_dict(self) -> Dict[str, bool]:
        return {
            "toxicity": self.toxicity,
            "self_harm": self.self_harm,
            "violence": self.violence,
            "hate": self.hate,
            "sexual": self.sexual,
            "mental_health_concern": self.mental_health_concern,
        }


@dataclass(frozen=True)
class AnalysisDetails:
    """Raw signals behind an AnalysisResult, kept for explainability."""
    toxicity: ClassifierOutcome
    moderation: ClassifierOutcome
    keywords: List[KeywordMatch] = field(default_factory=list)
    sentiment: float = 0.0
    unavailable_classifiers: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not -1.0 <= self.sentiment <= 1.0:
            raise ValueError(f"Sentiment must be -1.0-1.0, got {self.sentiment}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "toxicity": self.toxicity.to_dict(),
            "moderation": self.moderation.to_dict(),
            "keywords": [match.to_dict() for match in self.keywords],
            "sentiment": round(self.sentiment, 3),
            "unavailable_classifiers": list(self.unavailable_classifiers),
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Risk assessment for a single message.

    Immutable - results cannot be modified after creation.
    """
    text: str
    risk_score: float       # 0.0 to 100.0
    risk_level: RiskLevel
    flags: SafetyFlags
    details: AnalysisDetails
    requires_alert: bool
    categories: List[str] = field(default_factory=list)
    suggested_actions: List[str] = field(default_factory=list)
    analyzed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if not 0.0 <= self.risk_score <= 100.0:
            raise ValueError(f"Risk score must be 0.0-100.0, got {self.risk_score}")

    @property
    def sentiment(self) -> float:
        return self.details.sentiment

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "analyzed_at": self.analyzed_at.isoformat(),
            "text": self.text,
            "risk_score": round(self.risk_score, 2),
            "risk_level": self.risk_level.value,
            "categories": list(self.categories),
            "flags": self.flags.to_dict(),
            "details": self.details.to_dict(),
            "requires_alert": self.requires_alert,
            "suggested_actions": list(self.suggested_actions),
        }


@dataclass(frozen=True)
class ConversationAnalysis:
    """Aggregated analysis of an ordered sequence of messages.

    ``critical_messages`` holds references to the high/critical results of
    the input sequence, in their original order.
    """
    message_count: int
    overall_risk_score: float
    overall_risk_level: RiskLevel
    is_escalating: bool
    sentiment_trend: SentimentTrend
    critical_messages: List[AnalysisResult] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not 0.0 <= self.overall_risk_score <= 100.0:
            raise ValueError(
                f"Overall risk score must be 0.0-100.0, got {self.overall_risk_score}"
            )

    @property
    def requires_alert(self) -> bool:
        """Any alerting message, or an elevated conversation as a whole."""
        return self.overall_risk_level.is_elevated or any(
            result.requires_alert for result in self.critical_messages
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "message_count": self.message_count,
            "overall_risk_score": round(self.overall_risk_score, 2),
            "overall_risk_level": self.overall_risk_level.value,
            "is_escalating": self.is_escalating,
            "sentiment_trend": self.sentiment_trend.value,
            "critical_messages": [result.to_dict() for result in self.critical_messages],
            "recommendations": list(self.recommendations),
        }
