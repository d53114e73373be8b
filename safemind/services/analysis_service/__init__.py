"""Analysis Service: content-risk aggregation engine.

Combines two external classifiers (toxicity, safety categories), lexicon
matching and coarse sentiment into a 0-100 risk score, a risk level,
safety flags and suggested actions. Conversations add escalation and
sentiment-trend tracking over the per-message results.

Components:
- risk_aggregator.py: RiskAggregator (analyze_message, analyze_conversation)
- conversation_analyzer.py: ConversationAnalyzer
- keyword_detector.py: KeywordDetector (lexicon matcher)
- sentiment.py: SentimentEstimator
- config.py: Weights, thresholds, lexicons, crisis resources
- handler.py: Flask HTTP endpoints
- alert_publisher.py: Kinesis alert events
- rate_limiter.py: Fixed-window per-client limiting

Usage:
    from safemind.services.analysis_service import RiskAggregator
    aggregator = RiskAggregator(toxicity_classifier, moderation_classifier)
    result = await aggregator.analyze_message("some text")
"""

from .config import AnalysisConfig, RiskThresholds, CRITICAL_CATEGORIES
from .conversation_analyzer import ConversationAnalyzer
from .keyword_detector import KeywordDetector
from .risk_aggregator import RiskAggregator
from .scoring import determine_risk_level
from .sentiment import SentimentEstimator

__all__ = [
    "AnalysisConfig",
    "RiskThresholds",
    "CRITICAL_CATEGORIES",
    "ConversationAnalyzer",
    "KeywordDetector",
    "RiskAggregator",
    "determine_risk_level",
    "SentimentEstimator",
]
