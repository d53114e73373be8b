"""Score clamping and the risk-level step function."""
import math
from typing import Optional, Sequence

from safemind.shared.models import RiskLevel
from .config import RiskThresholds

_DEFAULT_THRESHOLDS = RiskThresholds()


def clamp_score(score: float) -> float:
    """Clamp a composite score to 0.0-100.0; NaN maps to 0.0."""
    if math.isnan(score):
        return 0.0
    return min(max(score, 0.0), 100.0)


def determine_risk_level(
    risk_score: float,
    critical_flags: Sequence[str] = (),
    thresholds: Optional[RiskThresholds] = None,
) -> RiskLevel:
    """Map a 0-100 risk score to a risk level.

    Any critical safety category forces CRITICAL regardless of score.
    Conversation-level callers pass no critical flags, so a conversation
    is never forced to CRITICAL by a single category.

    Args:
        risk_score: Composite risk score
        critical_flags: Critical moderation categories reported for the text
        thresholds: Level boundaries (defaults to RiskThresholds())

    Returns:
        Appropriate RiskLevel enum value
    """
    thresholds = thresholds or _DEFAULT_THRESHOLDS

    if critical_flags or risk_score >= thresholds.CRITICAL_MIN:
        return RiskLevel.CRITICAL
    elif risk_score >= thresholds.HIGH_MIN:
        return RiskLevel.HIGH
    elif risk_score >= thresholds.MEDIUM_MIN:
        return RiskLevel.MEDIUM
    else:
        return RiskLevel.LOW
