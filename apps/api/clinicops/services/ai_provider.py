"""
Chat-completion providers (OpenAI, Gemini) behind one interface.

Each provider only knows how to shape a request and read the reply; the
HTTP round trip, retries, and timeout are shared.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

from clinicops.core.config import settings
from clinicops.services.http_service import request_with_retries

logger = logging.getLogger(__name__)

AI_MAX_ATTEMPTS = 2
DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "gemini": "gemini-2.0-flash",
}


class AIUnavailableError(Exception):
    """No provider configured, or the provider call failed."""


@dataclass
class ChatMessage:
    role: str  # system | user | assistant
    content: str


@dataclass
class ChatResponse:
    content: str
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0


class AIProvider(ABC):
    name = ""

    def __init__(self, api_key: str, default_model: str, timeout: float = 30.0):
        self.api_key = api_key
        self.default_model = default_model
        self.timeout = timeout

    @abstractmethod
    def build_request(
        self, messages: list[ChatMessage], model: str, temperature: float, max_tokens: int
    ) -> tuple[str, dict[str, Any]]:
        """(url, httpx.post keyword arguments) for one completion."""

    @abstractmethod
    def parse_response(self, data: dict[str, Any], model: str) -> ChatResponse:
        """Raises KeyError/IndexError on an unexpected payload."""

    async def chat(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 800,
    ) -> ChatResponse:
        model = model or self.default_model
        url, request_kwargs = self.build_request(messages, model, temperature, max_tokens)

        async with httpx.AsyncClient(timeout=self.timeout) as client:

            async def request_fn() -> httpx.Response:
                return await client.post(url, **request_kwargs)

            response = await request_with_retries(
                request_fn, label=self.name, max_attempts=AI_MAX_ATTEMPTS
            )
        response.raise_for_status()
        return self.parse_response(response.json(), model)


class OpenAIProvider(AIProvider):
    name = "openai"
    base_url = "https://api.openai.com/v1"

    def build_request(self, messages, model, temperature, max_tokens):
        return f"{self.base_url}/chat/completions", {
            "headers": {"Authorization": f"Bearer {self.api_key}"},
            "json": {
                "model": model,
                "messages": [{"role": m.role, "content": m.content} for m in messages],
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
        }

    def parse_response(self, data, model):
        usage = data.get("usage") or {}
        return ChatResponse(
            content=data["choices"][0]["message"]["content"] or "",
            model=model,
            prompt_tokens=usage.get("prompt_tokens", 0),
            completion_tokens=usage.get("completion_tokens", 0),
        )


class GeminiProvider(AIProvider):
    name = "gemini"
    base_url = "https://generativelanguage.googleapis.com/v1beta"

    def build_request(self, messages, model, temperature, max_tokens):
        # System prompts go in systemInstruction; assistant turns are "model"
        system_parts = [{"text": m.content} for m in messages if m.role == "system"]
        body: dict[str, Any] = {
            "contents": [
                {
                    "role": "model" if m.role == "assistant" else "user",
                    "parts": [{"text": m.content}],
                }
                for m in messages
                if m.role != "system"
            ],
            "generationConfig": {"temperature": temperature, "maxOutputTokens": max_tokens},
        }
        if system_parts:
            body["systemInstruction"] = {"parts": system_parts}
        return f"{self.base_url}/models/{model}:generateContent", {
            "params": {"key": self.api_key},
            "json": body,
        }

    def parse_response(self, data, model):
        usage = data.get("usageMetadata") or {}
        return ChatResponse(
            content=data["candidates"][0]["content"]["parts"][0]["text"],
            model=model,
            prompt_tokens=usage.get("promptTokenCount", 0),
            completion_tokens=usage.get("candidatesTokenCount", 0),
        )


PROVIDERS: dict[str, type[AIProvider]] = {
    OpenAIProvider.name: OpenAIProvider,
    GeminiProvider.name: GeminiProvider,
}


def get_provider(provider_name: str, api_key: str, model: str | None = None) -> AIProvider:
    """
    Raises:
        ValueError: Unknown provider name
    """
    provider_cls = PROVIDERS.get(provider_name)
    if provider_cls is None:
        raise ValueError(f"Unknown provider: {provider_name}")
    return provider_cls(
        api_key,
        default_model=model or DEFAULT_MODELS[provider_name],
        timeout=settings.AI_TIMEOUT_SECONDS,
    )


def get_configured_provider() -> AIProvider:
    """
    Provider from settings.

    Raises:
        AIUnavailableError: No API key for the configured provider
    """
    if not settings.ai_api_key:
        raise AIUnavailableError(f"No API key configured for {settings.AI_PROVIDER}")
    return get_provider(settings.AI_PROVIDER, settings.ai_api_key, settings.AI_MODEL or None)
