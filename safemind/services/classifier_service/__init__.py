"""Classifier Service: adapters for the external content classifiers.

Components:
- base.py: BaseClassifier interface, ClassifierError
- perspective.py: Perspective API toxicity classifier (aiohttp)
- moderation.py: OpenAI moderation safety-category classifier

Usage:
    from safemind.services.classifier_service import PerspectiveClassifier
    classifier = PerspectiveClassifier(api_key="...")
    outcome = await classifier.classify("some text")
"""

from .base import BaseClassifier, ClassifierConfig, ClassifierError, ClassifierProvider
from .moderation import ModerationClassifier
from .perspective import PerspectiveClassifier

__all__ = [
    "BaseClassifier",
    "ClassifierConfig",
    "ClassifierError",
    "ClassifierProvider",
    "ModerationClassifier",
    "PerspectiveClassifier",
]
