from .base import ExtractionProvider, build_prompt, is_image
from .gemini_provider import GeminiProvider
from .openai_provider import OpenAIProvider
from .registry import ProviderRegistry
