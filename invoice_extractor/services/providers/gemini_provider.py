import asyncio
from typing import Any, Optional
import google.generativeai as genai
from loguru import logger
from .base import build_prompt
from ..invoice_types import ProviderReply
from ...core.errors import ExtractionError, ProviderConfigurationError


class GeminiProvider:
    """Google Gemini backend. Images are passed as inline blobs next to the prompt."""

    name = "gemini"

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-2.0-flash",
        max_tokens: int = 4096,
        temperature: float = 0.1,
        client: Optional[Any] = None,
    ):
        if not api_key and client is None:
            raise ProviderConfigurationError("GEMINI_API_KEY is not configured")
        self.model_name = model
        if client is None:
            genai.configure(api_key=api_key)
            client = genai.GenerativeModel(
                model,
                generation_config={"max_output_tokens": max_tokens, "temperature": temperature},
            )
        self.client = client

    async def extract(self, content: bytes, media_type: str) -> ProviderReply:
        # PDF text extraction is CPU-bound; keep it off the event loop
        prompt = await asyncio.to_thread(build_prompt, content, media_type)

        parts: list = [prompt.text]
        if prompt.is_vision:
            parts.append({"mime_type": prompt.media_type, "data": prompt.image})

        logger.info(
            "Calling Gemini",
            model=self.model_name,
            vision=prompt.is_vision,
            size_bytes=len(content),
        )

        try:
            response = await self.client.generate_content_async(parts)
            # .text raises ValueError when the candidate was blocked
            text = response.text
        except Exception as e:
            logger.error(f"Gemini extraction failed: {str(e)}")
            raise ExtractionError(f"Gemini extraction failed: {str(e)}")

        if not text:
            raise ExtractionError("No response content from Gemini")

        return ProviderReply(text=text, raw={"model": self.model_name, "text": text})
