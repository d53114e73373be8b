"""Base classifier interface.

Provides the abstract base class shared by the external content
classifiers (Perspective toxicity, OpenAI moderation). Adapters return a
ClassifierOutcome on success and raise ClassifierError on any failure;
the RiskAggregator decides how failures degrade.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from safemind.shared.models import ClassifierOutcome

logger = logging.getLogger(__name__)


class ClassifierProvider(Enum):
    """Supported external classifiers."""
    PERSPECTIVE = "perspective"
    OPENAI_MODERATION = "openai_moderation"


class ClassifierError(Exception):
    """Raised when a classifier call fails (transport, status or payload)."""

    def __init__(self, provider: ClassifierProvider, message: str):
        super().__init__(f"{provider.value}: {message}")
        self.provider = provider


@dataclass(frozen=True)
class ClassifierConfig:
    """Configuration for an external classifier."""
    provider: ClassifierProvider
    api_key: str
    endpoint: Optional[str] = None
    model_name: Optional[str] = None
    timeout_seconds: float = 10.0


class BaseClassifier(ABC):
    """Abstract base class for classifier implementations."""

    def __init__(self, config: ClassifierConfig):
        """Initialize classifier with configuration.

        Args:
            config: Classifier configuration

        Raises:
            ValueError: If no API key is configured
        """
        if not config.api_key:
            raise ValueError(f"{config.provider.value} API key required")

        self.config = config
        logger.info(
            "CLASSIFIER_INITIALIZED",
            extra={
                "provider": config.provider.value,
                "timeout_seconds": config.timeout_seconds,
            }
        )

    @property
    def name(self) -> str:
        return self.config.provider.value

    @abstractmethod
    async def classify(self, text: str) -> ClassifierOutcome:
        """Classify text.

        Args:
            text: Message text to classify

        Returns:
            ClassifierOutcome with per-category confidences

        Raises:
            ClassifierError: On network error, non-success status or
                malformed payload
        """
        pass
