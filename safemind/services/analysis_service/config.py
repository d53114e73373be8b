"""Analysis Service configuration, risk thresholds and lexicons.

Weights, thresholds and term lists are fixed design decisions of the
aggregation engine. Term lists are ordered tuples so match order is
stable from run to run.
"""
from dataclasses import dataclass
from typing import FrozenSet, Tuple


@dataclass(frozen=True)
class RiskThresholds:
    """Lower bounds of each risk level on the 0-100 composite score."""
    MEDIUM_MIN: float = 40.0
    HIGH_MIN: float = 60.0
    CRITICAL_MIN: float = 80.0


@dataclass(frozen=True)
class AnalysisConfig:
    """Configuration for message and conversation analysis."""

    # Composite weights - the safety-category classifier is trusted most,
    # coarse sentiment least
    toxicity_weight: float = 0.3
    moderation_weight: float = 0.4
    keyword_weight: float = 0.2
    sentiment_weight: float = 0.1

    # Toxicity attributes above this raw score are flagged
    toxicity_flag_threshold: float = 0.7

    # Points per distinct concern-tier keyword match (capped at 100)
    keyword_points_per_match: float = 20.0

    # Each classifier call is abandoned after this long
    classifier_timeout_seconds: float = 10.0

    # Upper bound on concurrently analyzed messages in one conversation
    max_concurrent_messages: int = 10

    # Conversation trend windows and ratios
    trend_window: int = 3
    escalation_ratio: float = 1.3
    improving_ratio: float = 1.2
    declining_ratio: float = 0.8

    # Version tracking for audit trail
    engine_version: str = "2026.10.18"


# Boundary limits
MAX_MESSAGE_LENGTH = 10000
MAX_CONVERSATION_LENGTH = 100

# Moderation categories that force CRITICAL for a single message.
# Names are the moderation API's own category names.
CRITICAL_CATEGORIES: FrozenSet[str] = frozenset({
    "self-harm/intent",
    "self-harm/instructions",
    "violence/graphic",
    "harassment/threatening",
    "sexual/minors",
})

SELF_HARM_CATEGORIES: FrozenSet[str] = frozenset({"self-harm/intent", "self-harm/instructions"})
VIOLENCE_CATEGORIES: FrozenSet[str] = frozenset({"violence", "violence/graphic"})
HATE_CATEGORIES: FrozenSet[str] = frozenset({"hate", "hate/threatening"})
SEXUAL_CATEGORIES: FrozenSet[str] = frozenset({"sexual", "sexual/minors"})

# General concern vocabulary: depression, hopelessness, isolation
CONCERN_KEYWORDS: Tuple[str, ...] = (
    "depressed",
    "depression",
    "anxious",
    "anxiety",
    "hopeless",
    "worthless",
    "lonely",
    "isolated",
    "empty",
    "numb",
    "tired of living",
    "can't go on",
    "give up",
    "no point",
    "burden",
    "better off without me",
    "end it all",
    "done with life",
)

# Direct self-harm / suicide vocabulary - any match maxes the keyword component
CRITICAL_KEYWORDS: Tuple[str, ...] = (
    "kill myself",
    "suicide",
    "end my life",
    "want to die",
    "wish i was dead",
    "wouldn't miss me",
    "goodbye forever",
    "final message",
    "take my own life",
    "self harm",
    "cut myself",
    "overdose",
    "jump off",
    "hang myself",
)

POSITIVE_TERMS: Tuple[str, ...] = ("happy", "good", "great", "better", "hope", "love", "joy")
NEGATIVE_TERMS: Tuple[str, ...] = ("sad", "bad", "worse", "hate", "hurt", "pain", "terrible")
SENTIMENT_INCREMENT = 0.1

# Static resources returned with every alerting response
CRISIS_RESOURCES = (
    {
        "name": "988 Suicide & Crisis Lifeline",
        "type": "hotline",
        "phone": "988",
        "description": "24/7 crisis support - call or text",
        "priority": 1,
    },
    {
        "name": "Crisis Text Line",
        "type": "text_line",
        "text": "HOME to 741741",
        "description": "Text-based crisis support",
        "priority": 2,
    },
    {
        "name": "The Trevor Project",
        "type": "hotline",
        "phone": "1-866-488-7386",
        "description": "24/7 support for LGBTQ+ young people",
        "priority": 3,
    },
)
