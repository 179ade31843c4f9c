import asyncio
import base64
from typing import Optional
from loguru import logger
from openai import AsyncOpenAI
from .base import build_prompt
from ..invoice_types import ProviderReply
from ...core.errors import ExtractionError, ProviderConfigurationError


class OpenAIProvider:
    """Chat-completions backend. Images are sent inline as base64 data URLs."""

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-4o",
        max_tokens: int = 4096,
        temperature: float = 0.1,
        max_retries: int = 2,
        client: Optional[AsyncOpenAI] = None,
    ):
        if not api_key and client is None:
            raise ProviderConfigurationError("OPENAI_API_KEY is not configured")
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.client = client or AsyncOpenAI(api_key=api_key, max_retries=max_retries)

    async def extract(self, content: bytes, media_type: str) -> ProviderReply:
        # PDF text extraction is CPU-bound; keep it off the event loop
        prompt = await asyncio.to_thread(build_prompt, content, media_type)

        if prompt.is_vision:
            image_url = f"data:{prompt.media_type};base64,{base64.b64encode(prompt.image).decode('ascii')}"
            message_content = [
                {"type": "text", "text": prompt.text},
                {"type": "image_url", "image_url": {"url": image_url, "detail": "high"}},
            ]
        else:
            message_content = prompt.text

        logger.info(
            "Calling OpenAI",
            model=self.model,
            vision=prompt.is_vision,
            size_bytes=len(content),
        )

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": message_content}],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
            text = response.choices[0].message.content if response.choices else None
        except Exception as e:
            logger.error(f"OpenAI extraction failed: {str(e)}")
            raise ExtractionError(f"OpenAI extraction failed: {str(e)}")

        if not text:
            raise ExtractionError("No response content from OpenAI")

        return ProviderReply(text=text, raw=response.model_dump(mode="json"))
