"""Alert event publisher for the Analysis Service.

Publishes "alert required" events to a Kinesis stream so guardian
notification can be handled downstream. The analysis response never
waits on, or fails because of, publishing.

Events carry a hash of the message text, never the text itself.
"""
import json
import logging
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from safemind.shared.models import AnalysisResult, ConversationAnalysis, SafetyFlags

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AlertEvent:
    """Immutable alert event published to Kinesis."""
    event_id: str
    scope: str                  # "message" or "conversation"
    subject_hash: str           # Text hash, or hash of the joined conversation
    risk_score: float
    risk_level: str
    event_type: str = "analysis.alert.required"
    flags: dict = field(default_factory=dict)
    categories: List[str] = field(default_factory=list)
    suggested_actions: List[str] = field(default_factory=list)
    engine_version: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_kinesis_payload(self) -> dict:
        """Convert to Kinesis record payload."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "timestamp": self.timestamp.isoformat(),
            "source": "analysis-service",
            "data": {
                "scope": self.scope,
                "subject_hash": self.subject_hash,
                "risk_score": round(self.risk_score, 2),
                "risk_level": self.risk_level,
                "flags": self.flags,
                "categories": self.categories,
                "suggested_actions": self.suggested_actions,
                "engine_version": self.engine_version,
            }
        }

    @classmethod
    def for_message(cls, result: AnalysisResult, subject_hash: str, engine_version: str = "") -> "AlertEvent":
        return cls(
            event_id=f"evt_{uuid.uuid4().hex[:12]}",
            scope="message",
            subject_hash=subject_hash,
            risk_score=result.risk_score,
            risk_level=result.risk_level.value,
            flags=result.flags.to_dict(),
            categories=list(result.categories),
            suggested_actions=list(result.suggested_actions),
            engine_version=engine_version,
        )

    @classmethod
    def for_conversation(
        cls,
        analysis: ConversationAnalysis,
        subject_hash: str,
        engine_version: str = "",
    ) -> "AlertEvent":
        """Build a conversation event; flags are raised if any critical message raised them."""
        flags = SafetyFlags().to_dict()
        categories: List[str] = []
        for result in analysis.critical_messages:
            categories.extend(result.categories)
            for name, raised in result.flags.to_dict().items():
                flags[name] = flags[name] or raised
        return cls(
            event_id=f"evt_{uuid.uuid4().hex[:12]}",
            scope="conversation",
            subject_hash=subject_hash,
            risk_score=analysis.overall_risk_score,
            risk_level=analysis.overall_risk_level.value,
            flags=flags,
            categories=list(dict.fromkeys(categories)),
            suggested_actions=list(analysis.recommendations),
            engine_version=engine_version,
        )


class AlertEventPublisher:
    """Publishes alert events to a Kinesis stream.

    Failure Handling:
        - Publishing failure does NOT block the analysis response
        - Failures are logged at CRITICAL level for alerting
    """

    def __init__(
        self,
        stream_name: str = "safemind-alert-events",
        enabled: bool = True,
        region: Optional[str] = None,
    ):
        """Initialize publisher.

        Args:
            stream_name: Kinesis stream name
            enabled: Whether publishing is enabled (disable for local dev)
            region: AWS region (defaults to AWS_REGION env var)
        """
        self.stream_name = stream_name
        self.enabled = enabled
        self.region = region or os.getenv("AWS_REGION", "us-east-1")
        self._kinesis_client = None

        logger.info(
            "ALERT_PUBLISHER_INITIALIZED",
            extra={
                "stream_name": stream_name,
                "enabled": enabled,
                "region": self.region,
            }
        )

    @property
    def kinesis_client(self):
        """Lazy initialization of Kinesis client."""
        if self._kinesis_client is None and self.enabled:
            try:
                import boto3
                self._kinesis_client = boto3.client(
                    "kinesis",
                    region_name=self.region,
                )
            except Exception as e:
                logger.error(
                    "KINESIS_CLIENT_INIT_FAILED",
                    extra={"error": str(e)}
                )
        return self._kinesis_client

    def publish(self, event: AlertEvent) -> bool:
        """Publish an alert event to Kinesis.

        Args:
            event: Event to publish

        Returns:
            True if published successfully, False otherwise

        Note:
            Failure does NOT raise - the caller's response still goes out.
        """
        if not self.enabled:
            logger.info(
                "ALERT_PUBLISH_SKIPPED",
                extra={
                    "event_id": event.event_id,
                    "reason": "publishing_disabled",
                }
            )
            return False

        payload = event.to_kinesis_payload()

        try:
            if self.kinesis_client is None:
                # Fallback: log event for manual processing
                logger.critical(
                    "ALERT_EVENT_FALLBACK_LOG",
                    extra={
                        "event_id": event.event_id,
                        "payload": json.dumps(payload),
                        "reason": "kinesis_client_unavailable",
                        "action": "MANUAL_PROCESSING_REQUIRED",
                    }
                )
                return False

            response = self.kinesis_client.put_record(
                StreamName=self.stream_name,
                Data=json.dumps(payload),
                PartitionKey=event.subject_hash,
            )

            logger.warning(
                "ALERT_EVENT_PUBLISHED",
                extra={
                    "event_id": event.event_id,
                    "scope": event.scope,
                    "risk_level": event.risk_level,
                    "shard_id": response.get("ShardId"),
                    "sequence_number": response.get("SequenceNumber"),
                }
            )
            return True

        except Exception as e:
            logger.critical(
                "ALERT_EVENT_PUBLISH_FAILED",
                extra={
                    "event_id": event.event_id,
                    "scope": event.scope,
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "action": "MANUAL_REVIEW_REQUIRED",
                    "payload": json.dumps(payload),
                }
            )
            return False
