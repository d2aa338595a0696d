from __future__ import annotations

from dataclasses import dataclass, field, replace
import json
import logging
import os
from pathlib import Path
from typing import Any, Literal, Mapping

from .models import normalize_framework, normalize_language

CONFIG_FILENAME = "best-locator.config.json"
DEFAULT_PROJECT_ATTRIBUTES = ("data-testid", "data-cy", "data-test", "data-qa")

ProviderName = Literal["ollama", "openai", "disabled"]
OnError = Literal["traditional", "throw"]

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class OllamaSettings:
    host: str = "http://localhost:11434"
    model: str = "llama3.1:8b"
    timeout_ms: int = 30000
    temperature: float = 0.3


@dataclass(frozen=True, slots=True)
class OpenAISettings:
    api_key: str | None = None
    model: str = "gpt-4o"
    timeout_ms: int = 20000
    temperature: float = 0.1
    project: str | None = None


@dataclass(frozen=True, slots=True)
class AISettings:
    enabled: bool = False
    provider: ProviderName = "ollama"
    ollama: OllamaSettings = field(default_factory=OllamaSettings)
    openai: OpenAISettings = field(default_factory=OpenAISettings)
    explain_decisions: bool = False
    on_error: OnError = "traditional"
    max_attempts: int = 3


@dataclass(frozen=True, slots=True)
class EngineConfig:
    project_attributes: tuple[str, ...] = DEFAULT_PROJECT_ATTRIBUTES
    default_framework: str = "playwright"
    default_language: str = "typescript"
    i18n_safe: bool = False
    ai: AISettings = field(default_factory=AISettings)


def validate_ai_settings(settings: AISettings) -> None:
    ollama = settings.ollama
    if not ollama.host or not ollama.model:
        raise ConfigError("Ollama host and model are required.")
    if ollama.timeout_ms < 1000:
        raise ConfigError("Ollama timeout must be at least 1000 ms.")
    if not 0 <= ollama.temperature <= 1:
        raise ConfigError("Ollama temperature must be between 0 and 1.")
    if settings.max_attempts < 1:
        raise ConfigError("AI max_attempts must be at least 1.")


def find_config_file(start_dir: Path | None = None, home_dir: Path | None = None) -> Path | None:
    for directory in (start_dir or Path.cwd(), home_dir or Path.home()):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_config(config_path: Path | None = None) -> EngineConfig:
    path = config_path or find_config_file()
    if path is None:
        return _with_env(EngineConfig())
    if not path.exists() or not path.is_file():
        logger.warning("Config file not found: %s; using defaults", path)
        return _with_env(EngineConfig())

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, TypeError) as exc:
        logger.warning("Could not read config %s: %s; using defaults", path, exc)
        return _with_env(EngineConfig())

    if not isinstance(payload, dict):
        logger.warning("Config %s is not a JSON object; using defaults", path)
        return _with_env(EngineConfig())

    try:
        config = config_from_mapping(payload)
    except (ValueError, TypeError) as exc:
        logger.warning("Invalid config %s: %s; using defaults", path, exc)
        return _with_env(EngineConfig())
    return _with_env(config)


def config_from_mapping(payload: Mapping[str, Any]) -> EngineConfig:
    defaults = EngineConfig()

    attributes = _get(payload, "project_attributes", "projectAttributes")
    if attributes is None:
        project_attributes = defaults.project_attributes
    elif isinstance(attributes, (list, tuple)):
        project_attributes = tuple(str(item).strip() for item in attributes if str(item).strip())
    else:
        raise ConfigError("projectAttributes must be a list of attribute names.")

    try:
        framework = normalize_framework(
            str(_get(payload, "default_framework", "defaultFramework") or defaults.default_framework)
        )
        language = normalize_language(
            str(_get(payload, "default_language", "defaultLanguage") or defaults.default_language)
        )
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc

    ai_payload = payload.get("ai")
    ai = _ai_from_mapping(ai_payload) if isinstance(ai_payload, Mapping) else defaults.ai

    return EngineConfig(
        project_attributes=project_attributes,
        default_framework=framework,
        default_language=language,
        i18n_safe=_as_bool(_get(payload, "i18n_safe", "i18nSafe"), "i18nSafe", defaults.i18n_safe),
        ai=ai,
    )


def _ai_from_mapping(payload: Mapping[str, Any]) -> AISettings:
    defaults = AISettings()

    provider = str(payload.get("provider") or defaults.provider).lower()
    if provider not in ("ollama", "openai", "disabled"):
        raise ConfigError(f"Unsupported AI provider: {provider!r}")

    ollama_payload = payload.get("ollama") if isinstance(payload.get("ollama"), Mapping) else {}
    ollama = OllamaSettings(
        host=str(ollama_payload.get("host") or defaults.ollama.host),
        model=str(ollama_payload.get("model") or defaults.ollama.model),
        timeout_ms=int(_get(ollama_payload, "timeout_ms", "timeout") or defaults.ollama.timeout_ms),
        temperature=float(ollama_payload.get("temperature", defaults.ollama.temperature)),
    )

    openai_payload = payload.get("openai") if isinstance(payload.get("openai"), Mapping) else {}
    openai = OpenAISettings(
        api_key=_get(openai_payload, "api_key", "apiKey"),
        model=str(openai_payload.get("model") or defaults.openai.model),
        timeout_ms=int(_get(openai_payload, "timeout_ms", "timeout") or defaults.openai.timeout_ms),
        temperature=float(openai_payload.get("temperature", defaults.openai.temperature)),
        project=openai_payload.get("project"),
    )

    features = payload.get("features") if isinstance(payload.get("features"), Mapping) else {}
    fallback = payload.get("fallback") if isinstance(payload.get("fallback"), Mapping) else {}
    on_error = str(_get(fallback, "on_error", "onError") or defaults.on_error).lower()
    if on_error == "fail":
        on_error = "throw"
    if on_error not in ("traditional", "throw"):
        raise ConfigError(f"Unsupported AI fallback mode: {on_error!r}")

    settings = AISettings(
        enabled=_as_bool(payload.get("enabled"), "ai.enabled", defaults.enabled),
        provider=provider,  # type: ignore[arg-type]
        ollama=ollama,
        openai=openai,
        explain_decisions=_as_bool(
            _get(features, "explain_decisions", "explainDecisions"), "features.explainDecisions", defaults.explain_decisions
        ),
        on_error=on_error,  # type: ignore[arg-type]
        max_attempts=int(_get(payload, "max_attempts", "maxAttempts") or defaults.max_attempts),
    )
    validate_ai_settings(settings)
    return settings


def _with_env(config: EngineConfig) -> EngineConfig:
    if config.ai.openai.api_key:
        return config
    env_key = os.environ.get("OPENAI_API_KEY")
    if not env_key:
        return config
    openai = replace(config.ai.openai, api_key=env_key)
    return replace(config, ai=replace(config.ai, openai=openai))


def _get(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return None


def _as_bool(value: Any, key: str, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ConfigError(f"{key} must be true or false, got {value!r}.")
