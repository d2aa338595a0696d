import json

import httpx
import pytest

from bestlocator.ai_providers import (
    OPENAI_CHAT_URL,
    OllamaProvider,
    OpenAIProvider,
    ProviderError,
    ProviderTimeoutError,
    create_ai_provider,
)
from bestlocator.config import AISettings, ConfigError, OllamaSettings, OpenAISettings


@pytest.fixture(autouse=True)
def _clear_openai_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_PROJECT", raising=False)


@pytest.mark.asyncio
async def test_ollama_generate_posts_prompt() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"response": "  <ANSWER>{}</ANSWER>  "})

    provider = OllamaProvider(OllamaSettings(host="http://ollama.local:11434/"), transport=httpx.MockTransport(handler))
    assert await provider.generate_text("hello") == "<ANSWER>{}</ANSWER>"
    assert seen["url"] == "http://ollama.local:11434/api/generate"
    body = seen["body"]
    assert isinstance(body, dict)
    assert body["model"] == "llama3.1:8b"
    assert body["stream"] is False
    assert body["options"] == {"temperature": 0.3}


@pytest.mark.asyncio
async def test_ollama_http_error_is_reported() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(500, text="model not loaded"))
    provider = OllamaProvider(OllamaSettings(), transport=transport)
    with pytest.raises(ProviderError) as excinfo:
        await provider.generate_text("hello")
    assert str(excinfo.value) == "Ollama HTTP 500: model not loaded"


@pytest.mark.asyncio
async def test_ollama_timeout_raises_timeout_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    provider = OllamaProvider(OllamaSettings(), transport=httpx.MockTransport(handler))
    with pytest.raises(ProviderTimeoutError):
        await provider.generate_text("hello")


@pytest.mark.asyncio
async def test_ollama_availability() -> None:
    up = OllamaProvider(OllamaSettings(), transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"models": []})))
    assert await up.is_available()

    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    down = OllamaProvider(OllamaSettings(), transport=httpx.MockTransport(refuse))
    assert not await down.is_available()


def test_openai_key_validation() -> None:
    with pytest.raises(ConfigError, match="missing or too short"):
        OpenAIProvider(OpenAISettings())
    with pytest.raises(ConfigError, match="should start with 'sk-'"):
        OpenAIProvider(OpenAISettings(api_key="pk-123"))


def test_openai_key_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    assert OpenAIProvider(OpenAISettings()).api_key == "sk-env"


@pytest.mark.asyncio
async def test_openai_generate_sends_headers() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["project"] = request.headers.get("OpenAI-Project")
        return httpx.Response(200, json={"choices": [{"message": {"content": " answer "}}]})

    settings = OpenAISettings(api_key="sk-test", project="proj_1")
    provider = OpenAIProvider(settings, transport=httpx.MockTransport(handler))
    assert await provider.generate_text("hi") == "answer"
    assert seen == {"url": OPENAI_CHAT_URL, "auth": "Bearer sk-test", "project": "proj_1"}
    assert await provider.is_available()


@pytest.mark.asyncio
async def test_openai_errors() -> None:
    failing = httpx.MockTransport(lambda r: httpx.Response(401, json={"error": {"message": "Incorrect API key"}}))
    provider = OpenAIProvider(OpenAISettings(api_key="sk-test"), transport=failing)
    with pytest.raises(ProviderError, match="OpenAI API error: Incorrect API key"):
        await provider.generate_text("hi")

    empty = httpx.MockTransport(lambda r: httpx.Response(200, json={"choices": []}))
    provider = OpenAIProvider(OpenAISettings(api_key="sk-test"), transport=empty)
    with pytest.raises(ProviderError, match="Empty response from OpenAI."):
        await provider.generate_text("hi")


def test_create_ai_provider() -> None:
    assert create_ai_provider(AISettings()) is None
    assert create_ai_provider(AISettings(enabled=True, provider="disabled")) is None
    assert isinstance(create_ai_provider(AISettings(enabled=True)), OllamaProvider)
    assert create_ai_provider(AISettings(enabled=True, provider="openai")) is None

    openai = AISettings(enabled=True, provider="openai", openai=OpenAISettings(api_key="sk-live"))
    assert isinstance(create_ai_provider(openai), OpenAIProvider)
