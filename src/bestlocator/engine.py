from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from .ai_engine import AIEngine
from .ai_orchestrator import AIExhaustedError
from .ai_providers import ProviderError, create_ai_provider
from .config import EngineConfig
from .formatters import format_mobile, format_selector
from .logging_utils import build_logger
from .mobile import generate_mobile_selector
from .models import ElementInfo, MobileElementInfo, PageContext, SelectorResult
from .normalizer import normalize_ai_result
from .pipeline import FrameworkProfile, effective_config, get_profile, prepare_element, run_pipeline
from .strategies import try_priority_attributes

logger = logging.getLogger(__name__)


class SelectorEngine:
    def __init__(
        self,
        config: EngineConfig | None = None,
        framework: str | None = None,
        ai_engine: AIEngine | None = None,
    ) -> None:
        self.logger = build_logger()
        self.config = config or EngineConfig()
        self.profile: FrameworkProfile = get_profile(framework or self.config.default_framework)
        if ai_engine is None and self.config.ai.enabled:
            provider = create_ai_provider(self.config.ai)
            ai_engine = AIEngine(provider, self.config.ai.max_attempts) if provider is not None else None
        self.ai_engine = ai_engine

    @property
    def framework(self) -> str:
        return self.profile.name

    def generate_selector(self, element: ElementInfo | MobileElementInfo | Mapping[str, Any]) -> SelectorResult:
        if isinstance(element, MobileElementInfo):
            return generate_mobile_selector(element)
        return run_pipeline(element, self.profile, self.config)

    async def generate_selector_with_ai(
        self,
        element: ElementInfo | Mapping[str, Any],
        context: PageContext | None = None,
    ) -> SelectorResult:
        prepared = prepare_element(element)

        priority = try_priority_attributes(prepared, effective_config(self.profile, self.config))
        if priority is not None and priority.confidence >= 100:
            return self.profile.optimizer(priority)

        if self.ai_engine is not None and await self.ai_engine.is_available():
            try:
                ai_result = await self.ai_engine.generate_selector(prepared, context)
            except (AIExhaustedError, ProviderError) as exc:
                if self.config.ai.on_error == "throw":
                    raise
                logger.warning("AI generation failed, falling back to traditional method: %s", exc)
            else:
                return self.profile.optimizer(normalize_ai_result(prepared, ai_result))

        return run_pipeline(prepared, self.profile, self.config)

    async def generate_selectors_with_ai(
        self,
        elements: Iterable[ElementInfo | Mapping[str, Any]],
        context: PageContext | None = None,
    ) -> list[SelectorResult]:
        results: list[SelectorResult] = []
        for element in elements:
            results.append(await self.generate_selector_with_ai(element, context))
        return results

    async def explain(self, result: SelectorResult, element: ElementInfo) -> str | None:
        if self.ai_engine is None or not self.config.ai.explain_decisions:
            return None
        return await self.ai_engine.explain_selector(result.selector, prepare_element(element))

    def format(self, result: SelectorResult, language: str | None = None) -> str:
        return format_selector(result, self.framework, language or self.config.default_language)

    def format_mobile(self, result: SelectorResult, platform: str, language: str | None = None) -> str:
        return format_mobile(result, platform, language or self.config.default_language)
