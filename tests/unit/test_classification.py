"""Tests for classification prompt building, response parsing and the classifier service."""

import asyncio
import json

import pytest

from feedback_resolver.core import LLMException
from feedback_resolver.resolution.application import ClassificationService
from feedback_resolver.resolution.domain import (
    ClassificationPromptBuilder,
    ClassificationResponseParser,
    ClassificationResult,
)


class TestClassificationResponseParser:

    def test_clean_json(self):
        assert ClassificationResponseParser.parse(
            '{"normalized_key": "billing", "sentiment": "negative"}'
        ) == ("billing", "negative", "json")

    def test_json_embedded_in_prose(self):
        text = 'Sure! Here is the result:\n{"normalized_key": "technical", "sentiment": "neutral"}\nHope that helps.'
        assert ClassificationResponseParser.parse(text) == ("technical", "neutral", "json")

    def test_json_values_are_case_folded(self):
        assert ClassificationResponseParser.parse(
            '{"normalized_key": "BILLING", "sentiment": " Positive "}'
        ) == ("billing", "positive", "json")

    def test_braces_inside_strings_do_not_end_object(self):
        text = '{"note": "use {curly} braces", "normalized_key": "general", "sentiment": "positive"}'
        assert ClassificationResponseParser.parse(text) == ("general", "positive", "json")

    def test_pattern_fallback_for_broken_json(self):
        text = 'normalized_key: technical, sentiment: negative'
        assert ClassificationResponseParser.parse(text) == ("technical", "negative", "pattern")

    def test_out_of_set_json_value_falls_back_per_field(self):
        text = '{"normalized_key": "shipping", "sentiment": "negative"}'
        key, sentiment, source = ClassificationResponseParser.parse(text)
        assert key == "general"
        assert sentiment == "negative"
        assert source == "json"

    @pytest.mark.parametrize("garbage", [
        "",
        None,
        "I cannot help with that.",
        "{not json at all",
        '["billing", "negative"]',
        '{"normalized_key": 42, "sentiment": null}',
    ])
    def test_garbage_yields_defaults(self, garbage):
        assert ClassificationResponseParser.parse(garbage) == ("general", "neutral", "default")

    def test_extract_json_object_unbalanced(self):
        assert ClassificationResponseParser.extract_json_object('{"a": {"b": 1}') is None

    def test_extract_json_object_first_object(self):
        assert ClassificationResponseParser.extract_json_object('x {"a": 1} {"b": 2}') == '{"a": 1}'


class TestClassificationPromptBuilder:

    def test_messages_keep_instructions_out_of_user_turn(self):
        messages = ClassificationPromptBuilder.build_messages("My invoice is wrong")

        assert messages[0]["role"] == "system"
        assert '"billing", "technical", or "general"' in messages[0]["content"]
        assert messages[1] == {
            "role": "user",
            "content": 'Message: "My invoice is wrong"\n\nRespond with JSON only.'
        }


class TestClassificationResult:

    def test_rejects_out_of_set_values(self):
        with pytest.raises(ValueError):
            ClassificationResult(normalized_key="shipping", sentiment="neutral", source="json")
        with pytest.raises(ValueError):
            ClassificationResult(normalized_key="billing", sentiment="furious", source="json")

    def test_default(self):
        result = ClassificationResult.default()
        assert (result.normalized_key, result.sentiment, result.source) == ("general", "neutral", "default")


class TestClassificationService:

    @pytest.mark.asyncio
    async def test_classifies_with_configured_parameters(self, fakes):
        llm = fakes.LLMClient(content=json.dumps({"normalized_key": "billing", "sentiment": "negative"}))
        service = ClassificationService(llm, temperature=0.3, max_tokens=200)

        result = await service.classify("I was charged twice")

        assert result.normalized_key == "billing"
        assert result.sentiment == "negative"
        assert result.source == "json"
        assert result.model_used == "fake-model"
        assert llm.calls[0]["temperature"] == 0.3
        assert llm.calls[0]["max_tokens"] == 200
        assert llm.calls[0]["operation"] == "classification"

    @pytest.mark.asyncio
    async def test_inference_failure_yields_defaults(self, fakes, llm_down):
        service = ClassificationService(fakes.LLMClient(error=llm_down))

        result = await service.classify("anything")

        assert (result.normalized_key, result.sentiment, result.source) == ("general", "neutral", "default")

    @pytest.mark.asyncio
    async def test_timeout_yields_defaults(self, fakes):
        class SlowLLM(fakes.LLMClient):
            async def chat_completion(self, *args, **kwargs):
                await asyncio.sleep(1)
                return await super().chat_completion(*args, **kwargs)

        service = ClassificationService(SlowLLM(content="{}"), timeout_seconds=0.01)

        result = await service.classify("anything")

        assert result.source == "default"

    @pytest.mark.asyncio
    async def test_unparseable_response_yields_defaults(self, fakes):
        service = ClassificationService(fakes.LLMClient(content="The message seems upset."))

        result = await service.classify("anything")

        assert (result.normalized_key, result.sentiment) == ("general", "neutral")
