"""Tests for the LLM client (no real API calls)."""

from unittest.mock import MagicMock, patch

import pytest

from studyhub.config.app_config import LLMSettings
from studyhub.llm.client import (
    LLMClient,
    LLMConfig,
    LLMConnectionError,
    LLMError,
    LLMResponseError,
    Message,
)


def _completion(content, model="gpt-4o-mini"):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    response.model = model
    response.usage.prompt_tokens = 10
    response.usage.completion_tokens = 20
    response.usage.total_tokens = 30
    return response


@pytest.fixture
def mock_openai_client():
    with patch("studyhub.llm.client.OpenAI") as mock:
        mock_instance = MagicMock()
        mock.return_value = mock_instance
        yield mock_instance


class TestLLMConfig:
    def test_from_settings(self):
        settings = LLMSettings(provider="lmstudio", model="local", api_key_env="STUDYHUB_TEST_KEY")

        with patch.dict("os.environ", {"STUDYHUB_TEST_KEY": "secret"}):
            config = LLMConfig.from_settings(settings)

        assert config.base_url == "http://localhost:1234/v1"
        assert config.model == "local"
        assert config.api_key == "secret"

    def test_explicit_base_url_wins(self):
        config = LLMConfig.from_settings(LLMSettings(base_url="http://gpu:8000/v1"))
        assert config.base_url == "http://gpu:8000/v1"


class TestChat:
    def test_success(self, mock_openai_client):
        mock_openai_client.chat.completions.create.return_value = _completion("Hello")

        response = LLMClient(LLMConfig()).chat([Message(role="user", content="Hi")])

        assert response.content == "Hello"
        assert response.total_tokens == 30

    def test_empty_choices(self, mock_openai_client):
        empty = MagicMock()
        empty.choices = []
        mock_openai_client.chat.completions.create.return_value = empty

        with pytest.raises(LLMResponseError, match="Empty response"):
            LLMClient(LLMConfig()).chat([Message(role="user", content="Hi")])

    def test_connection_error(self, mock_openai_client):
        mock_openai_client.chat.completions.create.side_effect = Exception("Connection refused")

        with pytest.raises(LLMConnectionError):
            LLMClient(LLMConfig()).chat([Message(role="user", content="Hi")])
        assert mock_openai_client.chat.completions.create.call_count == 1

    def test_other_api_error(self, mock_openai_client):
        mock_openai_client.chat.completions.create.side_effect = Exception("quota exceeded")

        with pytest.raises(LLMError, match="quota"):
            LLMClient(LLMConfig()).chat([Message(role="user", content="Hi")])


class TestGenerate:
    def test_text(self, mock_openai_client):
        mock_openai_client.chat.completions.create.return_value = _completion("Plain answer")

        result = LLMClient(LLMConfig()).generate("Explain", system_prompt="Be brief")

        assert result == "Plain answer"
        kwargs = mock_openai_client.chat.completions.create.call_args.kwargs
        assert [m["role"] for m in kwargs["messages"]] == ["system", "user"]
        assert "response_format" not in kwargs

    def test_structured_openai_uses_json_schema(self, mock_openai_client):
        mock_openai_client.chat.completions.create.return_value = _completion('{"score": 80}')
        schema = {"type": "object", "properties": {"score": {"type": "number"}}}

        result = LLMClient(LLMConfig(provider="openai")).generate("Mark", response_schema=schema)

        assert result == {"score": 80}
        response_format = mock_openai_client.chat.completions.create.call_args.kwargs["response_format"]
        assert response_format["type"] == "json_schema"
        assert response_format["json_schema"]["schema"] is schema

    def test_structured_anthropic_has_no_response_format(self, mock_openai_client):
        mock_openai_client.chat.completions.create.return_value = _completion(
            'Here you go:\n```json\n{"score": 40}\n```'
        )

        result = LLMClient(LLMConfig(provider="anthropic")).generate("Mark", response_schema={})

        assert result == {"score": 40}
        assert "response_format" not in mock_openai_client.chat.completions.create.call_args.kwargs

    def test_strips_reasoning_before_json(self, mock_openai_client):
        mock_openai_client.chat.completions.create.return_value = _completion(
            '<think>{"draft": 1}</think>{"score": 90}'
        )

        assert LLMClient(LLMConfig()).generate("Mark", response_schema={}) == {"score": 90}

    def test_invalid_json(self, mock_openai_client):
        mock_openai_client.chat.completions.create.return_value = _completion("not json")

        with pytest.raises(LLMResponseError, match="Could not parse JSON"):
            LLMClient(LLMConfig()).generate("Mark", response_schema={})


class TestAvailability:
    def test_available(self, mock_openai_client):
        mock_openai_client.models.list.return_value = []
        assert LLMClient(LLMConfig()).is_available() is True

    def test_unavailable(self, mock_openai_client):
        mock_openai_client.models.list.side_effect = Exception("Connection refused")
        assert LLMClient(LLMConfig()).is_available() is False
