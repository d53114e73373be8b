"""Analysis Service HTTP handler.

Exposes the aggregation engine over JSON:
    POST /api/analyze/message       - Analyze single message
    POST /api/analyze/conversation  - Analyze conversation
    GET  /api/analyze/health        - Classifier key status
    GET  /health, /ready            - Liveness / readiness

This module owns the web-edge concerns the engine does not: request
validation, rate limiting, crisis resources and alert publishing.
Raw message text is never logged; use hash_text_for_audit().
"""
import logging
import os
from typing import Any, List, Optional

from flask import Flask, jsonify, request

from safemind.shared.utils import hash_text_for_audit
from safemind.services.classifier_service import ModerationClassifier, PerspectiveClassifier
from .alert_publisher import AlertEvent, AlertEventPublisher
from .config import (
    CRISIS_RESOURCES,
    MAX_CONVERSATION_LENGTH,
    MAX_MESSAGE_LENGTH,
    AnalysisConfig,
)
from .rate_limiter import FixedWindowRateLimiter
from .risk_aggregator import RiskAggregator

logger = logging.getLogger(__name__)

# Initialize Flask app
app = Flask(__name__)

PERSPECTIVE_API_KEY = os.getenv("PERSPECTIVE_API_KEY")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")

config = AnalysisConfig(
    classifier_timeout_seconds=float(os.getenv("CLASSIFIER_TIMEOUT_SECONDS", "10")),
)


def _build_aggregator() -> Optional[RiskAggregator]:
    """Build the engine if both classifier keys are configured."""
    if not (PERSPECTIVE_API_KEY and OPENAI_API_KEY):
        logger.warning(
            "ANALYSIS_KEYS_MISSING",
            extra={
                "perspective": bool(PERSPECTIVE_API_KEY),
                "openai": bool(OPENAI_API_KEY),
            }
        )
        return None

    return RiskAggregator(
        toxicity_classifier=PerspectiveClassifier(
            api_key=PERSPECTIVE_API_KEY,
            timeout_seconds=config.classifier_timeout_seconds,
        ),
        moderation_classifier=ModerationClassifier(
            api_key=OPENAI_API_KEY,
            model_name=os.getenv("OPENAI_MODERATION_MODEL"),
            timeout_seconds=config.classifier_timeout_seconds,
        ),
        config=config,
    )


aggregator = _build_aggregator()

rate_limiter = FixedWindowRateLimiter(
    max_requests=int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100")),
    window_seconds=int(os.getenv("RATE_LIMIT_WINDOW_MS", "60000")) / 1000,
)

alert_publisher = AlertEventPublisher(
    stream_name=os.getenv("KINESIS_STREAM_NAME", "safemind-alert-events"),
    enabled=os.getenv("ALERT_PUBLISHING_ENABLED", "false").lower() == "true",
)


@app.before_request
def enforce_rate_limit():
    """Apply the per-client limit to API routes."""
    if not request.path.startswith("/api/"):
        return None

    decision = rate_limiter.check(request.remote_addr or "unknown")
    if not decision.allowed:
        return jsonify({
            "success": False,
            "error": "Too many requests",
            "retry_after": decision.retry_after_seconds,
        }), 429
    return None


@app.route("/health", methods=["GET"])
def health():
    """Health check endpoint.

    Returns:
        200 with service status
    """
    return jsonify({
        "status": "healthy",
        "service": "analysis-service",
        "engine_version": config.engine_version,
    }), 200


@app.route("/ready", methods=["GET"])
def ready():
    """Readiness check - verifies the engine is configured.

    Returns:
        200 if ready, 503 if not
    """
    if aggregator is None:
        return jsonify({"status": "not_ready", "reason": "api_keys_not_configured"}), 503
    return jsonify({"status": "ready"}), 200


@app.route("/api/analyze/health", methods=["GET"])
def analysis_health():
    """Report which classifier keys are configured."""
    has_keys = bool(PERSPECTIVE_API_KEY and OPENAI_API_KEY)
    return jsonify({
        "success": True,
        "status": "ready" if has_keys else "missing_keys",
        "services": {
            "perspective": bool(PERSPECTIVE_API_KEY),
            "openai": bool(OPENAI_API_KEY),
        },
    }), 200


@app.route("/api/analyze/message", methods=["POST"])
async def analyze_message():
    """Analyze a single message.

    Request Body:
        {"text": "Message text"}

    Response:
        {
            "success": true,
            "analysis": {...AnalysisResult...},
            "crisis_resources": [...] (only if requires_alert)
        }
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _validation_error(["body: Request body must be a JSON object"])

    errors = _validate_text(data.get("text"), "text")
    if errors:
        return _validation_error(errors)

    if aggregator is None:
        return _keys_missing()

    text = data["text"]
    try:
        result = await aggregator.analyze_message(text)
    except Exception as e:
        return _analysis_failed(e, route="message")

    response = {"success": True, "analysis": result.to_dict()}
    if result.requires_alert:
        response["crisis_resources"] = list(CRISIS_RESOURCES)
        alert_publisher.publish(AlertEvent.for_message(
            result,
            subject_hash=hash_text_for_audit(text),
            engine_version=config.engine_version,
        ))

    return jsonify(response), 200


@app.route("/api/analyze/conversation", methods=["POST"])
async def analyze_conversation():
    """Analyze an entire conversation.

    Request Body:
        {"messages": ["first", "second", ...]}

    Response:
        {
            "success": true,
            "analysis": {...ConversationAnalysis...},
            "crisis_resources": [...] (only if the conversation requires alert)
        }
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _validation_error(["body: Request body must be a JSON object"])

    messages = data.get("messages")
    errors = _validate_messages(messages)
    if errors:
        return _validation_error(errors)

    if aggregator is None:
        return _keys_missing()

    try:
        analysis = await aggregator.analyze_conversation(messages)
    except Exception as e:
        return _analysis_failed(e, route="conversation")

    response = {"success": True, "analysis": analysis.to_dict()}
    if analysis.requires_alert:
        response["crisis_resources"] = list(CRISIS_RESOURCES)
        alert_publisher.publish(AlertEvent.for_conversation(
            analysis,
            subject_hash=hash_text_for_audit("\n".join(messages)),
            engine_version=config.engine_version,
        ))

    return jsonify(response), 200


@app.errorhandler(404)
def not_found(error):
    return jsonify({
        "success": False,
        "error": "Not found",
        "path": request.path,
    }), 404


def _validate_text(value: Any, field: str) -> List[str]:
    """Validate one message text. Returns a list of error strings."""
    if not isinstance(value, str) or not value:
        return [f"{field}: Text is required"]
    if len(value) > MAX_MESSAGE_LENGTH:
        return [f"{field}: Text too long (max {MAX_MESSAGE_LENGTH} characters)"]
    return []


def _validate_messages(messages: Any) -> List[str]:
    if not isinstance(messages, list):
        return ["messages: Expected a list of strings"]
    if not messages:
        return ["messages: At least one message is required"]
    if len(messages) > MAX_CONVERSATION_LENGTH:
        return [f"messages: Too many messages (max {MAX_CONVERSATION_LENGTH})"]

    errors: List[str] = []
    for index, message in enumerate(messages):
        errors.extend(_validate_text(message, f"messages[{index}]"))
    return errors


def _validation_error(details: List[str]):
    logger.warning(
        "ANALYSIS_REQUEST_INVALID",
        extra={"path": request.path, "error_count": len(details)}
    )
    return jsonify({
        "success": False,
        "error": "Validation error",
        "details": details,
    }), 400


def _keys_missing():
    return jsonify({
        "success": False,
        "error": "API keys not configured",
    }), 503


def _analysis_failed(error: Exception, route: str):
    logger.error(
        "ANALYSIS_ERROR",
        extra={
            "route": route,
            "error": str(error),
            "error_type": type(error).__name__,
        }
    )
    return jsonify({
        "success": False,
        "error": "Analysis failed",
    }), 500


if __name__ == "__main__":
    # Configure logging
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Run development server
    port = int(os.getenv("PORT", "3001"))
    app.run(host="0.0.0.0", port=port, debug=False)
