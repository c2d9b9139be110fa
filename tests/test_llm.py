"""
Unit tests for the LLM router, mock provider and response parsing
"""
import json
from unittest.mock import MagicMock, patch

import pytest
from openai import OpenAIError

from ghostframe.services.cache import CacheService
from ghostframe.services.llm import (
    MOCK_SHORT_ANSWER, MOCK_TRUE_FALSE, LLMError, LLMResponse, LLMRouter, LLMUnavailableError, MockProvider,
    OpenAICompatibleProvider, clean_json_like, mock_completion, parse_json_object,
)


class FailingProvider:
    def __init__(self, name="groq"):
        self.name = name
        self.model = f"{name}-model"
        self.calls = 0

    def complete(self, prompt, **kwargs):
        self.calls += 1
        raise LLMError(f"{self.name} is down")


class EchoProvider:
    def __init__(self, name="openai"):
        self.name = name
        self.model = f"{name}-model"
        self.calls = []

    def complete(self, prompt, *, system=None, model=None, temperature=0.7, max_tokens=2000):
        self.calls.append(model)
        return LLMResponse(text='{"ok": true}', provider=self.name, model=model or self.model,
                           usage={"total_tokens": 7})


class TestParsing:
    def test_strips_code_fences(self):
        assert clean_json_like('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_isolates_object_from_chatter(self):
        assert clean_json_like('Sure! Here it is: {"a": {"b": 2}} Hope that helps.') == '{"a": {"b": 2}}'

    def test_missing_required_field_returns_none(self):
        assert parse_json_object('{"question": "Q?"}', ("question", "correctAnswer")) is None

    def test_blank_required_field_returns_none(self):
        assert parse_json_object('{"question": "  ", "correctAnswer": "A"}', ("question",)) is None

    def test_invalid_json_returns_none(self):
        assert parse_json_object("not json at all") is None
        assert parse_json_object(None) is None

    def test_array_is_not_an_object(self):
        assert parse_json_object("[1, 2, 3]") is None

    def test_valid_object(self):
        assert parse_json_object('{"question": "Q?", "correctAnswer": "A"}', ("question",)) == {
            "question": "Q?", "correctAnswer": "A",
        }


class TestMockProvider:
    def test_question_payloads_follow_prompt_kind(self):
        assert "options" in json.loads(mock_completion("Create a medium difficulty multiple choice question."))
        assert json.loads(mock_completion("Create a medium difficulty true/false question."))["correctAnswer"] == "True"
        assert "options" not in json.loads(mock_completion("Create a medium difficulty short answer question."))

    def test_quoted_statement_does_not_pick_kind(self):
        prompt = (
            "Based on this information: \"A multiple choice exam tests recall\"\n\n"
            "Create a hard difficulty true/false question."
        )
        assert json.loads(mock_completion(prompt)) == MOCK_TRUE_FALSE

    def test_storyteller_in_statement_gets_question(self):
        prompt = (
            "Based on this information: \"The storyteller kept oral history alive\"\n\n"
            "Create an easy difficulty short answer question that requires explanation or analysis."
        )
        assert json.loads(mock_completion(prompt)) == MOCK_SHORT_ANSWER

    def test_unrecognised_prompt(self):
        assert json.loads(mock_completion("Tell me about true/false tests")) == {"text": "Mock response"}

    def test_story_uses_prompt_fields(self):
        prompt = "\n".join([
            "You are a creative storyteller.",
            "- Genre: mystery",
            "- Target audience: children",
            "- Length: long (2000-3000 words)",
            "Key concepts: Volcanoes, Magma",
            "Themes: Courage",
        ])
        story = json.loads(mock_completion(prompt))
        assert story["title"] == "The Mystery of Volcanoes"
        assert len(story["story"].split("\n\n")) == 8
        assert story["themes"] == ["Courage"]

    def test_usage_is_reported(self):
        response = MockProvider().complete("Create a medium difficulty true/false question.")
        assert response.provider == "mock"
        assert response.usage["total_tokens"] > 0


class TestRouter:
    def test_falls_back_to_next_provider(self):
        failing, echo = FailingProvider("groq"), EchoProvider("openai")
        router = LLMRouter([failing, echo], allow_mock=False)
        response = router.generate("hello")
        assert failing.calls == 1
        assert response.provider == "openai"

    def test_falls_back_to_mock(self):
        router = LLMRouter([FailingProvider("groq")], allow_mock=True)
        response = router.generate("Create a medium difficulty true/false question.")
        assert response.provider == "mock"

    def test_all_providers_failing_raises(self):
        router = LLMRouter([FailingProvider("groq"), FailingProvider("openai")], allow_mock=False)
        with pytest.raises(LLMUnavailableError):
            router.generate("hello")

    def test_no_providers_raises(self):
        router = LLMRouter([], allow_mock=False)
        assert not router.is_available()
        with pytest.raises(LLMUnavailableError):
            router.generate("hello")

    def test_requested_provider_goes_first(self):
        groq, openai = EchoProvider("groq"), EchoProvider("openai")
        router = LLMRouter([groq, openai], allow_mock=False)
        assert router.generate("hello", provider="openai").provider == "openai"
        assert router.generate("hello").provider == "groq"

    def test_explicit_model_only_applies_to_first_choice(self):
        failing, echo = FailingProvider("groq"), EchoProvider("openai")
        router = LLMRouter([failing, echo], allow_mock=False)
        response = router.generate("hello", model="custom-model")
        assert echo.calls == ["openai-model"]
        assert response.model == "openai-model"

    def test_mock_default_skips_real_providers(self):
        echo = EchoProvider("groq")
        router = LLMRouter([echo], default_provider="mock", allow_mock=False)
        assert router.available_providers() == ["groq", "mock"]
        assert router.generate("hello").provider == "mock"
        assert echo.calls == []

    def test_completions_are_cached(self):
        echo = EchoProvider("groq")
        router = LLMRouter([echo], allow_mock=False, cache=CacheService(redis_url=""))
        first = router.generate("hello", temperature=0.2)
        second = router.generate("hello", temperature=0.2)
        assert first.cached is False
        assert second.cached is True
        assert second.text == first.text
        assert len(echo.calls) == 1


class TestOpenAICompatibleProvider:
    def test_wraps_sdk_errors(self):
        provider = OpenAICompatibleProvider("groq", "key", "llama")
        client = MagicMock()
        client.chat.completions.create.side_effect = OpenAIError("boom")
        with patch.object(provider, "_get_client", return_value=client):
            with pytest.raises(LLMError):
                provider.complete("hello")

    def test_reads_completion_and_usage(self):
        provider = OpenAICompatibleProvider("openai", "key", "gpt-4o-mini")
        rsp = MagicMock()
        rsp.choices = [MagicMock()]
        rsp.choices[0].message.content = '{"ok": true}'
        rsp.usage.prompt_tokens = 3
        rsp.usage.completion_tokens = 4
        rsp.usage.total_tokens = 7
        client = MagicMock()
        client.chat.completions.create.return_value = rsp
        with patch.object(provider, "_get_client", return_value=client):
            response = provider.complete("hello", system="be brief")

        assert response.text == '{"ok": true}'
        assert response.usage["total_tokens"] == 7
        messages = client.chat.completions.create.call_args.kwargs["messages"]
        assert messages[0] == {"role": "system", "content": "be brief"}
