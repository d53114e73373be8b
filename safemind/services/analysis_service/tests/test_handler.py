"""Tests for Analysis Service HTTP handler."""
import json

import pytest
from unittest.mock import patch, MagicMock, AsyncMock

from safemind.shared.models import ClassifierOutcome
from safemind.shared.utils import hash_text_for_audit
from safemind.services.classifier_service import (
    BaseClassifier,
    ClassifierConfig,
    ClassifierProvider,
)
from safemind.services.analysis_service import handler
from safemind.services.analysis_service.rate_limiter import FixedWindowRateLimiter
from safemind.services.analysis_service.risk_aggregator import RiskAggregator


class FakeClassifier(BaseClassifier):
    def __init__(self, provider, per_text=None):
        super().__init__(ClassifierConfig(provider=provider, api_key="test-key"))
        self.per_text = per_text or {}

    async def classify(self, text):
        scores, flagged = self.per_text.get(text, ({}, []))
        return ClassifierOutcome(source=self.name, scores=scores, flagged=flagged)


CRISIS_TEXT = "I don't want to be here anymore"


@pytest.fixture(autouse=True)
def fresh_rate_limiter():
    with patch.object(handler, "rate_limiter", FixedWindowRateLimiter(max_requests=100)):
        yield


@pytest.fixture
def client():
    """Create Flask test client."""
    handler.app.config["TESTING"] = True
    with handler.app.test_client() as client:
        yield client


@pytest.fixture
def engine():
    """Wire a RiskAggregator backed by fake classifiers into the handler."""
    moderation = FakeClassifier(
        ClassifierProvider.OPENAI_MODERATION,
        per_text={CRISIS_TEXT: ({"self-harm/intent": 0.92}, ["self-harm/intent"])},
    )
    aggregator = RiskAggregator(FakeClassifier(ClassifierProvider.PERSPECTIVE), moderation)
    with patch.object(handler, "aggregator", aggregator):
        yield aggregator


@pytest.fixture
def publisher():
    mock_publisher = MagicMock()
    with patch.object(handler, "alert_publisher", mock_publisher):
        yield mock_publisher


class TestHealthEndpoints:
    """Tests for /health, /ready and /api/analyze/health."""

    def test_health_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["status"] == "healthy"
        assert data["service"] == "analysis-service"

    def test_ready_without_keys_returns_503(self, client):
        with patch.object(handler, "aggregator", None):
            response = client.get("/ready")
        assert response.status_code == 503
        assert json.loads(response.data)["reason"] == "api_keys_not_configured"

    def test_ready_with_engine_returns_200(self, client, engine):
        response = client.get("/ready")
        assert response.status_code == 200

    def test_analysis_health_reports_key_status(self, client):
        with patch.object(handler, "PERSPECTIVE_API_KEY", "pk"), \
                patch.object(handler, "OPENAI_API_KEY", None):
            response = client.get("/api/analyze/health")

        data = json.loads(response.data)
        assert data["success"] is True
        assert data["status"] == "missing_keys"
        assert data["services"] == {"perspective": True, "openai": False}


class TestAnalyzeMessage:
    """Tests for POST /api/analyze/message."""

    def test_safe_message(self, client, engine, publisher):
        response = client.post("/api/analyze/message", json={"text": "See you at practice"})

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["success"] is True
        assert data["analysis"]["risk_level"] == "low"
        assert data["analysis"]["risk_score"] == 5.0
        assert "crisis_resources" not in data
        publisher.publish.assert_not_called()

    def test_alerting_message_adds_resources_and_publishes(self, client, engine, publisher):
        response = client.post("/api/analyze/message", json={"text": CRISIS_TEXT})

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["analysis"]["risk_level"] == "critical"
        assert data["analysis"]["requires_alert"] is True
        assert data["analysis"]["flags"]["self_harm"] is True
        assert [r["priority"] for r in data["crisis_resources"]] == [1, 2, 3]
        assert data["crisis_resources"][0]["phone"] == "988"

        publisher.publish.assert_called_once()
        event = publisher.publish.call_args.args[0]
        assert event.scope == "message"
        assert event.subject_hash == hash_text_for_audit(CRISIS_TEXT)

    def test_missing_text_returns_400(self, client, engine):
        response = client.post("/api/analyze/message", json={})

        assert response.status_code == 400
        data = json.loads(response.data)
        assert data["error"] == "Validation error"
        assert data["details"] == ["text: Text is required"]

    def test_non_string_text_returns_400(self, client, engine):
        response = client.post("/api/analyze/message", json={"text": 42})
        assert response.status_code == 400

    def test_too_long_text_returns_400(self, client, engine):
        response = client.post("/api/analyze/message", json={"text": "a" * 10001})

        assert response.status_code == 400
        assert json.loads(response.data)["details"] == [
            "text: Text too long (max 10000 characters)"
        ]

    def test_max_length_text_accepted(self, client, engine, publisher):
        response = client.post("/api/analyze/message", json={"text": "a" * 10000})
        assert response.status_code == 200

    def test_non_object_body_returns_400(self, client, engine):
        response = client.post("/api/analyze/message", data="not json", content_type="text/plain")

        assert response.status_code == 400
        assert json.loads(response.data)["details"] == [
            "body: Request body must be a JSON object"
        ]

    def test_missing_keys_returns_503(self, client):
        with patch.object(handler, "aggregator", None):
            response = client.post("/api/analyze/message", json={"text": "hello"})

        assert response.status_code == 503
        assert json.loads(response.data)["error"] == "API keys not configured"

    def test_engine_error_returns_500(self, client):
        broken = MagicMock()
        broken.analyze_message = AsyncMock(side_effect=RuntimeError("unexpected"))

        with patch.object(handler, "aggregator", broken):
            response = client.post("/api/analyze/message", json={"text": "hello"})

        assert response.status_code == 500
        data = json.loads(response.data)
        assert data == {"success": False, "error": "Analysis failed"}


class TestAnalyzeConversation:
    """Tests for POST /api/analyze/conversation."""

    def test_calm_conversation(self, client, engine, publisher):
        response = client.post(
            "/api/analyze/conversation",
            json={"messages": ["hey", "how was school", "see you tomorrow"]},
        )

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data["analysis"]["message_count"] == 3
        assert data["analysis"]["overall_risk_level"] == "low"
        assert data["analysis"]["critical_messages"] == []
        assert "crisis_resources" not in data
        publisher.publish.assert_not_called()

    def test_conversation_with_crisis_message_alerts(self, client, engine, publisher):
        messages = ["hey", CRISIS_TEXT]

        response = client.post("/api/analyze/conversation", json={"messages": messages})

        data = json.loads(response.data)
        assert len(data["analysis"]["critical_messages"]) == 1
        assert data["analysis"]["critical_messages"][0]["text"] == CRISIS_TEXT
        assert "crisis_resources" in data

        event = publisher.publish.call_args.args[0]
        assert event.scope == "conversation"
        assert event.subject_hash == hash_text_for_audit("\n".join(messages))

    def test_messages_not_a_list_returns_400(self, client, engine):
        response = client.post("/api/analyze/conversation", json={"messages": "hello"})

        assert response.status_code == 400
        assert json.loads(response.data)["details"] == ["messages: Expected a list of strings"]

    def test_empty_messages_returns_400(self, client, engine):
        response = client.post("/api/analyze/conversation", json={"messages": []})
        assert json.loads(response.data)["details"] == ["messages: At least one message is required"]

    def test_too_many_messages_returns_400(self, client, engine):
        response = client.post("/api/analyze/conversation", json={"messages": ["hi"] * 101})

        assert response.status_code == 400
        assert json.loads(response.data)["details"] == ["messages: Too many messages (max 100)"]

    def test_invalid_item_reported_by_index(self, client, engine):
        response = client.post(
            "/api/analyze/conversation",
            json={"messages": ["fine", "", 7]},
        )

        assert response.status_code == 400
        assert json.loads(response.data)["details"] == [
            "messages[1]: Text is required",
            "messages[2]: Text is required",
        ]


class TestRateLimiting:
    """Tests for the per-client request limit."""

    def test_exceeding_limit_returns_429(self, client, engine, publisher):
        with patch.object(handler, "rate_limiter", FixedWindowRateLimiter(max_requests=1)):
            first = client.post("/api/analyze/message", json={"text": "hello"})
            second = client.post("/api/analyze/message", json={"text": "hello"})

        assert first.status_code == 200
        assert second.status_code == 429
        data = json.loads(second.data)
        assert data["error"] == "Too many requests"
        assert data["retry_after"] >= 1

    def test_health_not_rate_limited(self, client):
        with patch.object(handler, "rate_limiter", FixedWindowRateLimiter(max_requests=1)):
            statuses = [client.get("/health").status_code for _ in range(3)]
        assert statuses == [200, 200, 200]


class TestNotFound:

    def test_unknown_route_returns_404(self, client):
        response = client.get("/api/unknown")

        assert response.status_code == 404
        data = json.loads(response.data)
        assert data["success"] is False
        assert data["path"] == "/api/unknown"
