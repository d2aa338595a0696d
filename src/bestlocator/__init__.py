from __future__ import annotations

from .ai_engine import AIEngine
from .ai_orchestrator import (
    AIBusinessRuleViolation,
    AIExhaustedError,
    AILocator,
    AIProtocolViolation,
    get_best_locator,
    retry_with_repair,
)
from .ai_providers import OllamaProvider, OpenAIProvider, ProviderError, ProviderTimeoutError, create_ai_provider
from .capture import extract_element_info, extract_page_context
from .config import AISettings, ConfigError, EngineConfig, OllamaSettings, OpenAISettings, load_config
from .engine import SelectorEngine
from .logging_utils import build_logger
from .formatters import format_mobile, format_selector
from .mobile import generate_mobile_selector
from .models import ElementInfo, FrameworkTarget, MobileElementInfo, PageContext, SelectorResult
from .normalizer import normalize_ai_result
from .pipeline import PROFILES, FrameworkProfile, generate_selector

__version__ = "0.1.0"

__all__ = [
    "AIBusinessRuleViolation",
    "AIEngine",
    "AIExhaustedError",
    "AILocator",
    "AIProtocolViolation",
    "AISettings",
    "ConfigError",
    "ElementInfo",
    "EngineConfig",
    "FrameworkProfile",
    "FrameworkTarget",
    "MobileElementInfo",
    "OllamaProvider",
    "OllamaSettings",
    "OpenAIProvider",
    "OpenAISettings",
    "PROFILES",
    "PageContext",
    "ProviderError",
    "ProviderTimeoutError",
    "SelectorEngine",
    "SelectorResult",
    "build_logger",
    "create_ai_provider",
    "extract_element_info",
    "extract_page_context",
    "format_mobile",
    "format_selector",
    "generate_mobile_selector",
    "generate_selector",
    "get_best_locator",
    "load_config",
    "normalize_ai_result",
    "retry_with_repair",
]
