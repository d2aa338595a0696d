import json
from pathlib import Path

import pytest

from bestlocator.config import (
    CONFIG_FILENAME,
    AISettings,
    ConfigError,
    EngineConfig,
    OllamaSettings,
    config_from_mapping,
    find_config_file,
    load_config,
    validate_ai_settings,
)


@pytest.fixture(autouse=True)
def _clear_openai_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)


def _write(path: Path, payload: object) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_load_config_reads_camel_case(tmp_path: Path) -> None:
    path = _write(
        tmp_path / CONFIG_FILENAME,
        {
            "projectAttributes": ["data-automation", " ", "data-testid"],
            "defaultFramework": "Selenium",
            "defaultLanguage": "py",
            "i18nSafe": True,
            "ai": {
                "enabled": True,
                "provider": "openai",
                "openai": {"apiKey": "sk-file", "model": "gpt-4o-mini"},
                "ollama": {"timeout": 5000},
                "features": {"explainDecisions": True},
                "fallback": {"onError": "fail"},
            },
        },
    )
    config = load_config(path)
    assert config.project_attributes == ("data-automation", "data-testid")
    assert (config.default_framework, config.default_language, config.i18n_safe) == ("selenium", "python", True)
    assert config.ai.enabled
    assert config.ai.provider == "openai"
    assert config.ai.openai.api_key == "sk-file"
    assert config.ai.openai.model == "gpt-4o-mini"
    assert config.ai.ollama.timeout_ms == 5000
    assert config.ai.explain_decisions
    assert config.ai.on_error == "throw"


def test_missing_file_returns_defaults(tmp_path: Path) -> None:
    assert load_config(tmp_path / "nope.json") == EngineConfig()


@pytest.mark.parametrize(
    "content",
    [
        "{ not json",
        "[1, 2, 3]",
        json.dumps({"defaultFramework": "nightwatch"}),
        json.dumps({"ai": {"provider": "claude"}}),
        json.dumps({"ai": {"ollama": {"timeout": 10}}}),
        json.dumps({"projectAttributes": "data-testid"}),
    ],
)
def test_invalid_config_falls_back_to_defaults(tmp_path: Path, content: str) -> None:
    path = tmp_path / CONFIG_FILENAME
    path.write_text(content, encoding="utf-8")
    assert load_config(path) == EngineConfig()


def test_environment_key_fills_missing_api_key(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    config = load_config(_write(tmp_path / CONFIG_FILENAME, {"ai": {"provider": "openai"}}))
    assert config.ai.openai.api_key == "sk-env"

    explicit = load_config(_write(tmp_path / "other.json", {"ai": {"openai": {"apiKey": "sk-file"}}}))
    assert explicit.ai.openai.api_key == "sk-file"


def test_find_config_file_prefers_project_directory(tmp_path: Path) -> None:
    project = tmp_path / "project"
    home = tmp_path / "home"
    project.mkdir()
    home.mkdir()
    assert find_config_file(project, home) is None

    home_file = _write(home / CONFIG_FILENAME, {})
    assert find_config_file(project, home) == home_file

    project_file = _write(project / CONFIG_FILENAME, {})
    assert find_config_file(project, home) == project_file


def test_config_from_mapping_accepts_snake_case() -> None:
    config = config_from_mapping({"project_attributes": ["data-qa"], "default_framework": "cypress"})
    assert config.project_attributes == ("data-qa",)
    assert config.default_framework == "cypress"
    assert config.ai == AISettings()


def test_validate_ai_settings() -> None:
    validate_ai_settings(AISettings())
    with pytest.raises(ConfigError):
        validate_ai_settings(AISettings(ollama=OllamaSettings(temperature=1.5)))
    with pytest.raises(ConfigError):
        validate_ai_settings(AISettings(max_attempts=0))


def test_boolean_flags_accept_json_strings() -> None:
    config = config_from_mapping({"i18nSafe": "false", "ai": {"enabled": "false", "features": {"explainDecisions": "TRUE"}}})
    assert config.i18n_safe is False
    assert config.ai.enabled is False
    assert config.ai.explain_decisions is True


def test_unrecognized_boolean_falls_back_to_defaults(tmp_path: Path) -> None:
    path = _write(tmp_path / CONFIG_FILENAME, {"ai": {"enabled": "sometimes"}})
    assert load_config(path) == EngineConfig()
    with pytest.raises(ConfigError):
        config_from_mapping({"i18nSafe": 1})
