"""Tests for ModerationClassifier.

The OpenAI client is mocked; no network calls are made.
"""
import openai
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from safemind.services.classifier_service import (
    ClassifierError,
    ClassifierProvider,
    ModerationClassifier,
)
from safemind.services.classifier_service.moderation import DEFAULT_MODERATION_MODEL


def _moderation_response(categories, category_scores, flagged=True):
    result = MagicMock()
    result.flagged = flagged
    result.categories.model_dump.return_value = categories
    result.category_scores.model_dump.return_value = category_scores
    response = MagicMock()
    response.results = [result]
    return response


def _client(response=None, error=None):
    client = MagicMock()
    client.moderations.create = AsyncMock(return_value=response, side_effect=error)
    return client


class TestConstruction:

    def test_missing_api_key_raises(self):
        with pytest.raises(ValueError):
            ModerationClassifier(api_key="")

    def test_default_model(self):
        classifier = ModerationClassifier(api_key="test-key", client=_client())
        assert classifier.config.model_name == DEFAULT_MODERATION_MODEL
        assert classifier.name == "openai_moderation"


@pytest.mark.asyncio
class TestClassify:

    async def test_success_uses_api_category_names(self):
        response = _moderation_response(
            categories={
                "self-harm": True,
                "self-harm/intent": True,
                "violence": False,
                "illicit": None,
            },
            category_scores={
                "self-harm": 0.88,
                "self-harm/intent": 0.91,
                "violence": 0.02,
                "illicit": None,
            },
        )
        classifier = ModerationClassifier(api_key="test-key", client=_client(response))

        outcome = await classifier.classify("I want to hurt myself")

        assert outcome.available is True
        assert outcome.source == "openai_moderation"
        assert outcome.flagged == ["self-harm", "self-harm/intent"]
        assert outcome.scores == {"self-harm": 0.88, "self-harm/intent": 0.91, "violence": 0.02}
        assert outcome.highest_score == 0.91

    async def test_request_uses_configured_model(self):
        client = _client(_moderation_response({}, {}, flagged=False))
        classifier = ModerationClassifier(
            api_key="test-key",
            model_name="text-moderation-stable",
            client=client,
        )

        await classifier.classify("hello")

        client.moderations.create.assert_awaited_once_with(
            input="hello",
            model="text-moderation-stable",
        )

    async def test_sdk_error_raises_classifier_error(self):
        classifier = ModerationClassifier(
            api_key="test-key",
            client=_client(error=openai.OpenAIError("service unavailable")),
        )

        with pytest.raises(ClassifierError) as exc_info:
            await classifier.classify("hello")

        assert exc_info.value.provider is ClassifierProvider.OPENAI_MODERATION

    async def test_empty_results_raises_classifier_error(self):
        response = MagicMock()
        response.results = []
        classifier = ModerationClassifier(api_key="test-key", client=_client(response))

        with pytest.raises(ClassifierError):
            await classifier.classify("hello")

    @patch("openai.AsyncOpenAI")
    async def test_builds_client_per_call_without_injection(self, mock_client_cls):
        client = _client(_moderation_response({"hate": False}, {"hate": 0.01}, flagged=False))
        mock_client_cls.return_value.__aenter__.return_value = client

        classifier = ModerationClassifier(api_key="test-key", timeout_seconds=7.0)
        outcome = await classifier.classify("hello")

        assert outcome.scores == {"hate": 0.01}
        call_kwargs = mock_client_cls.call_args.kwargs
        assert call_kwargs["api_key"] == "test-key"
        assert call_kwargs["timeout"] == 7.0
        assert call_kwargs["max_retries"] == 0


class TestBuildOutcome:

    def test_nan_score_raises(self):
        classifier = ModerationClassifier(api_key="test-key", client=_client())

        with pytest.raises(ClassifierError):
            classifier.build_outcome(
                categories={"violence": False},
                category_scores={"violence": float("nan")},
            )

    def test_null_scores_skipped(self):
        classifier = ModerationClassifier(api_key="test-key", client=_client())

        outcome = classifier.build_outcome(
            categories={"hate": None, "violence": True},
            category_scores={"hate": None, "violence": 0.8},
        )

        assert outcome.scores == {"violence": 0.8}
        assert outcome.flagged == ["violence"]
