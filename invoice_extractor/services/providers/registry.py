from typing import Callable, Optional
from loguru import logger
from .base import ExtractionProvider
from .gemini_provider import GeminiProvider
from .openai_provider import OpenAIProvider
from ...core.config import Settings
from ...core.errors import ProviderConfigurationError

ProviderFactory = Callable[[Settings], ExtractionProvider]


def _openai(settings: Settings) -> ExtractionProvider:
    return OpenAIProvider(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        max_tokens=settings.llm_max_tokens,
        temperature=settings.llm_temperature,
    )


def _gemini(settings: Settings) -> ExtractionProvider:
    return GeminiProvider(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        max_tokens=settings.llm_max_tokens,
        temperature=settings.llm_temperature,
    )


DEFAULT_FACTORIES: dict[str, ProviderFactory] = {
    "openai": _openai,
    "gemini": _gemini,
}


class ProviderRegistry:
    """
    Maps provider names to factories.

    Providers are built on selection, so a missing key for one backend
    never prevents using another.
    """

    def __init__(self, settings: Settings, factories: Optional[dict[str, ProviderFactory]] = None):
        self.settings = settings
        self._factories = dict(DEFAULT_FACTORIES if factories is None else factories)

    def register(self, name: str, factory: ProviderFactory) -> None:
        self._factories[name] = factory

    @property
    def names(self) -> list[str]:
        return sorted(self._factories)

    def get(self, name: Optional[str] = None) -> ExtractionProvider:
        """
        Build the named provider, or the configured default when name is None.

        Raises:
            ProviderConfigurationError: unknown name or missing credentials
        """
        name = name or self.settings.llm_provider
        factory = self._factories.get(name)
        if factory is None:
            raise ProviderConfigurationError(
                f"Unknown LLM provider: {name}. Available: {', '.join(self.names)}"
            )
        logger.debug("Selected extraction provider", provider=name)
        return factory(self.settings)
