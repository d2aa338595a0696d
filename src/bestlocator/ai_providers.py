from __future__ import annotations

import logging
import os
from typing import Any, Protocol

import httpx

from .config import AISettings, ConfigError, OllamaSettings, OpenAISettings

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"
AVAILABILITY_TIMEOUT_SECONDS = 3.0

logger = logging.getLogger(__name__)


class ProviderError(RuntimeError):
    pass


class ProviderTimeoutError(ProviderError):
    pass


class AIProvider(Protocol):
    async def generate_text(self, prompt: str) -> str: ...

    async def is_available(self) -> bool: ...


class OllamaProvider:
    def __init__(self, settings: OllamaSettings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        self.base_url = settings.host.rstrip("/")
        self._transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=self._transport)

    async def generate_text(self, prompt: str) -> str:
        payload = {
            "model": self.settings.model,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": self.settings.temperature},
        }
        try:
            async with self._client(self.settings.timeout_ms / 1000) as client:
                response = await client.post("/api/generate", json=payload)
        except httpx.TimeoutException as exc:
            raise ProviderTimeoutError(f"Ollama request timed out after {self.settings.timeout_ms} ms") from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"Ollama request failed: {exc}") from exc

        if response.is_error:
            raise ProviderError(f"Ollama HTTP {response.status_code}: {response.text}")
        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError("Ollama returned a non-JSON response") from exc
        if not isinstance(data, dict):
            return ""
        return str(data.get("response") or data.get("text") or "").strip()

    async def is_available(self) -> bool:
        try:
            async with self._client(AVAILABILITY_TIMEOUT_SECONDS) as client:
                response = await client.get("/api/tags")
        except httpx.HTTPError as exc:
            logger.debug("Ollama not reachable at %s: %s", self.base_url, exc)
            return False
        return response.status_code == 200


class OpenAIProvider:
    def __init__(self, settings: OpenAISettings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        api_key = (settings.api_key or os.environ.get("OPENAI_API_KEY") or "").strip()
        if not api_key:
            raise ConfigError("OpenAI API key is missing or too short.")
        if not api_key.startswith("sk-"):
            raise ConfigError("Invalid OpenAI API key format. It should start with 'sk-'.")
        self.settings = settings
        self.api_key = api_key
        self.project = settings.project or os.environ.get("OPENAI_PROJECT")
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        if self.project:
            headers["OpenAI-Project"] = self.project
        return headers

    async def generate_text(self, prompt: str) -> str:
        payload = {
            "model": self.settings.model,
            "temperature": self.settings.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.timeout_ms / 1000, transport=self._transport
            ) as client:
                response = await client.post(OPENAI_CHAT_URL, json=payload, headers=self._headers())
        except httpx.TimeoutException as exc:
            raise ProviderTimeoutError(f"OpenAI request timed out after {self.settings.timeout_ms} ms") from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"OpenAI request failed: {exc}") from exc

        if response.is_error:
            raise ProviderError(f"OpenAI API error: {_error_message(response)}")
        try:
            text = _choice_text(response.json()).strip()
        except ValueError as exc:
            raise ProviderError("OpenAI API error: non-JSON response") from exc
        if not text:
            raise ProviderError("Empty response from OpenAI.")
        return text

    async def is_available(self) -> bool:
        return bool(self.api_key)


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return response.text or f"HTTP {response.status_code}"


def _choice_text(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    if not isinstance(payload, dict):
        return ""
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0] if isinstance(choices[0], dict) else {}
    if isinstance(first.get("text"), str):
        return first["text"]
    message = first.get("message") or {}
    content = message.get("content") if isinstance(message, dict) else None
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        for part in content:
            if isinstance(part, dict) and isinstance(part.get("text"), str):
                return part["text"]
    return ""


def create_ai_provider(settings: AISettings) -> AIProvider | None:
    if not settings.enabled or settings.provider == "disabled":
        return None
    if settings.provider == "ollama":
        logger.info("Using AI provider: Ollama (%s)", settings.ollama.model)
        return OllamaProvider(settings.ollama)
    if settings.provider == "openai":
        try:
            provider = OpenAIProvider(settings.openai)
        except ConfigError as exc:
            logger.error("Failed to initialize OpenAI provider: %s", exc)
            return None
        logger.info("Using AI provider: OpenAI (%s)", settings.openai.model)
        return provider
    logger.warning("Unknown AI provider %r; AI disabled", settings.provider)
    return None
