"""LLM client for the generative-AI text service.

Provides a unified interface over OpenAI-compatible chat completion APIs.

Supported providers:
- openai: OpenAI API
- lmstudio: Local LM Studio server (OpenAI-compatible API)
- anthropic: Anthropic API (via OpenAI-compatible endpoint)

Calls are request/response only: a failed call raises one ``LLMError``
and is never retried.
"""

from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass, field
from typing import Any, Literal

import structlog
from openai import OpenAI

from studyhub.config.app_config import LLMSettings

logger = structlog.get_logger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

Provider = Literal["lmstudio", "openai", "anthropic"]

PROVIDER_BASE_URLS: dict[str, str] = {
    "lmstudio": "http://localhost:1234/v1",
    "openai": "https://api.openai.com/v1",
    "anthropic": "https://api.anthropic.com/v1",
}

# response_format support per provider
PROVIDER_CAPABILITIES: dict[str, dict[str, bool]] = {
    "lmstudio": {"supports_json_object": False, "supports_json_schema": True},
    "openai": {"supports_json_object": True, "supports_json_schema": True},
    "anthropic": {"supports_json_object": False, "supports_json_schema": False},
}

# Some models emit reasoning blocks before the answer
SANITIZE_PATTERNS = [
    re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE),
    re.compile(r"<analysis>.*?</analysis>", re.DOTALL | re.IGNORECASE),
    re.compile(r"<reasoning>.*?</reasoning>", re.DOTALL | re.IGNORECASE),
]


def _sanitize_for_json(text: str) -> str:
    """Remove thinking/reasoning tags before JSON parsing."""
    result = text
    for pattern in SANITIZE_PATTERNS:
        result = pattern.sub("", result)
    return result.strip()


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class LLMConfig:
    """Configuration for LLM client."""

    provider: Provider = "openai"
    base_url: str = PROVIDER_BASE_URLS["openai"]
    model: str = "gpt-4o-mini"
    temperature: float = 0.5
    max_tokens: int = 4096
    timeout: int = 120
    api_key: str | None = None

    @classmethod
    def from_settings(cls, settings: LLMSettings) -> LLMConfig:
        """Build client config from application settings."""
        return cls(
            provider=settings.provider,
            base_url=settings.base_url
            or PROVIDER_BASE_URLS.get(settings.provider, PROVIDER_BASE_URLS["openai"]),
            model=settings.model,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            timeout=settings.timeout,
            api_key=settings.get_api_key(),
        )


@dataclass
class Message:
    """A chat message."""

    role: Literal["system", "user", "assistant"]
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class LLMResponse:
    """Response from LLM."""

    content: str
    model: str
    provider: str
    usage: dict[str, int] = field(default_factory=dict)
    latency_ms: int = 0

    @property
    def total_tokens(self) -> int:
        return self.usage.get("total_tokens", 0)


class LLMError(Exception):
    """Error during LLM interaction."""

    pass


class LLMConnectionError(LLMError):
    """Error connecting to the AI service."""

    pass


class LLMResponseError(LLMError):
    """Error in the AI service response."""

    pass


# =============================================================================
# LLM CLIENT
# =============================================================================


class LLMClient:
    """Unified client for LLM interactions."""

    def __init__(self, config: LLMConfig | None = None):
        self.config = config or LLMConfig()
        self._client = OpenAI(
            base_url=self.config.base_url,
            api_key=self.config.api_key or "not-needed",
            timeout=self.config.timeout,
        )

        logger.info(
            "llm_client_initialized",
            provider=self.config.provider,
            model=self.config.model,
            base_url=self.config.base_url,
        )

    def _capability(self, name: str) -> bool:
        return PROVIDER_CAPABILITIES.get(self.config.provider, {}).get(name, False)

    def chat(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
        response_format: dict[str, Any] | None = None,
    ) -> LLMResponse:
        """Send chat completion request.

        Raises:
            LLMConnectionError: If cannot connect to the service
            LLMResponseError: If response is empty
            LLMError: Any other API failure
        """
        request_kwargs: dict[str, Any] = {
            "model": self.config.model,
            "messages": [m.to_dict() for m in messages],
            "temperature": self.config.temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.config.max_tokens,
        }
        if response_format is not None:
            request_kwargs["response_format"] = response_format

        start_time = time.time()

        try:
            response = self._client.chat.completions.create(**request_kwargs)
        except Exception as e:
            error_msg = str(e)
            if "Connection" in error_msg or "connect" in error_msg.lower():
                raise LLMConnectionError(
                    f"Could not connect to {self.config.provider} at {self.config.base_url}: {e}"
                ) from e
            raise LLMError(f"AI request failed: {e}") from e

        latency_ms = int((time.time() - start_time) * 1000)

        if not response.choices:
            raise LLMResponseError("Empty response from AI service")

        content = response.choices[0].message.content or ""

        usage = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        logger.debug(
            "llm_response",
            provider=self.config.provider,
            model=response.model,
            tokens=usage.get("total_tokens", 0),
            latency_ms=latency_ms,
        )

        return LLMResponse(
            content=content,
            model=response.model,
            provider=self.config.provider,
            usage=usage,
            latency_ms=latency_ms,
        )

    def _try_parse_json(self, content: str) -> dict[str, Any] | None:
        """Try to parse JSON from content.

        Tries:
        1. Direct parse
        2. Extract from ```json ... ``` blocks
        3. Extract first {...} object
        """
        content = _sanitize_for_json(content)

        try:
            return json.loads(content)
        except json.JSONDecodeError:
            pass

        json_match = re.search(r"```(?:json)?\s*([\s\S]*?)```", content)
        if json_match:
            try:
                return json.loads(json_match.group(1).strip())
            except json.JSONDecodeError:
                pass

        start = content.find("{")
        end = content.rfind("}") + 1
        if start >= 0 and end > start:
            try:
                return json.loads(content[start:end])
            except json.JSONDecodeError:
                pass

        return None

    def _response_format_for(self, schema: dict[str, Any]) -> dict[str, Any] | None:
        if self._capability("supports_json_schema"):
            return {
                "type": "json_schema",
                "json_schema": {"name": "response", "schema": schema},
            }
        if self._capability("supports_json_object"):
            return {"type": "json_object"}
        return None

    def generate(
        self,
        prompt: str,
        response_schema: dict[str, Any] | None = None,
        system_prompt: str | None = None,
        temperature: float | None = None,
    ) -> dict[str, Any] | str:
        """Single request/response generation.

        Args:
            prompt: User prompt
            response_schema: JSON schema of the expected result. When given,
                the parsed object is returned; otherwise the raw text.
            system_prompt: Optional system message
            temperature: Override temperature

        Raises:
            LLMResponseError: If a structured result was requested and the
                response is not valid JSON
        """
        messages = []
        if system_prompt:
            messages.append(Message(role="system", content=system_prompt))
        messages.append(Message(role="user", content=prompt))

        if response_schema is None:
            return self.chat(messages, temperature=temperature).content

        response = self.chat(
            messages,
            temperature=temperature,
            response_format=self._response_format_for(response_schema),
        )
        parsed = self._try_parse_json(response.content)
        if parsed is None:
            raise LLMResponseError(
                f"Could not parse JSON from AI response: {response.content[:200]}..."
            )
        return parsed

    def is_available(self) -> bool:
        """Check if the AI service responds."""
        try:
            self._client.models.list()
            return True
        except Exception:
            return False
