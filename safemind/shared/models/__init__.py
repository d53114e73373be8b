"""Shared domain models for the SafeMind analysis engine."""
from .risk import (
    RiskLevel,
    SentimentTrend,
    SafetyFlags,
    AnalysisDetails,
    AnalysisResult,
    ConversationAnalysis,
)
from .signals import ClassifierOutcome, KeywordMatch, KeywordTier

__all__ = [
    "RiskLevel",
    "SentimentTrend",
    "SafetyFlags",
    "AnalysisDetails",
    "AnalysisResult",
    "ConversationAnalysis",
    "ClassifierOutcome",
    "KeywordMatch",
    "KeywordTier",
]
