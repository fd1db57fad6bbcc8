"""
Content Generator - Gemini-backed text generation

Builds the full prompt from the content type's system instruction,
calls the model, and estimates the token cost of the exchange.

Usage:
    generator = GeminiContentGenerator()
    content = await generator.generate("blog-post", "Write about cold brew")
    print(content.text, content.tokens_used)
"""

import asyncio
import logging
import math
import os
from abc import ABC, abstractmethod
from typing import Optional, Union

from .config import (
    CHARS_PER_TOKEN,
    DEFAULT_MODEL,
    DEFAULT_SYSTEM_PROMPT,
    GENERATION_TIMEOUT_SECONDS,
    SYSTEM_PROMPTS,
)
from .errors import GenerationBackendError, RateLimitedError
from .models import ContentType, GeneratedContent

logger = logging.getLogger(__name__)


def get_system_prompt(content_type: Union[ContentType, str]) -> str:
    """Fixed instruction for a content type, generic assistant otherwise."""
    key = content_type.value if isinstance(content_type, ContentType) else content_type
    return SYSTEM_PROMPTS.get(key, DEFAULT_SYSTEM_PROMPT)


def build_full_prompt(content_type: Union[ContentType, str], prompt: str) -> str:
    return f"{get_system_prompt(content_type)}\n\nUser Request: {prompt}"


def estimate_tokens(text: str) -> int:
    """Rough estimate: 1 token ~ 4 characters."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def estimate_generation_cost(full_prompt: str, output: str) -> int:
    """Tokens charged for one generation: ceil((prompt chars + output chars) / 4)."""
    return math.ceil((len(full_prompt) + len(output)) / CHARS_PER_TOKEN)


def is_rate_limit_error(error: Exception) -> bool:
    """Check whether a backend exception means we are being throttled (HTTP 429)."""
    from google.api_core import exceptions as google_exceptions

    if isinstance(error, (google_exceptions.ResourceExhausted, google_exceptions.TooManyRequests)):
        return True
    if isinstance(error, google_exceptions.GoogleAPICallError):
        return error.code == 429
    return getattr(error, "status_code", None) == 429


class ContentGenerator(ABC):
    """Anything that turns (content type, prompt, model) into text and a cost."""

    @abstractmethod
    async def generate(
        self,
        content_type: Union[ContentType, str],
        prompt: str,
        model: Optional[str] = None
    ) -> GeneratedContent:
        """
        Generate content for a prompt.

        Raises:
            RateLimitedError: backend is throttling requests
            GenerationBackendError: any other backend failure
        """


class GeminiContentGenerator(ContentGenerator):
    """Google Gemini implementation of the content generator."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        default_model: str = DEFAULT_MODEL,
        timeout: float = GENERATION_TIMEOUT_SECONDS
    ):
        self.api_key = api_key or os.environ.get("GEMINI_API_KEY")
        self.default_model = default_model
        self.timeout = timeout
        self._configured = False

    def _get_model(self, model_name: str):
        """Configure the SDK once and return a model handle"""
        import google.generativeai as genai

        if not self._configured:
            genai.configure(api_key=self.api_key)
            self._configured = True
        return genai.GenerativeModel(model_name=model_name)

    async def generate(
        self,
        content_type: Union[ContentType, str],
        prompt: str,
        model: Optional[str] = None
    ) -> GeneratedContent:
        model_name = model or self.default_model
        full_prompt = build_full_prompt(content_type, prompt)

        if not self.api_key:
            raise GenerationBackendError("AI generation failed: GEMINI_API_KEY is not set")

        try:
            gen_model = self._get_model(model_name)
            response = await asyncio.wait_for(
                gen_model.generate_content_async(full_prompt),
                timeout=self.timeout
            )
            text = response.text
        except asyncio.TimeoutError as e:
            logger.error(f"Gemini request timed out after {self.timeout}s (model={model_name})")
            raise GenerationBackendError(
                f"AI generation failed: timed out after {self.timeout:g} seconds"
            ) from e
        except Exception as e:
            if is_rate_limit_error(e):
                logger.warning(f"Gemini rate limit hit (model={model_name}): {e}")
                raise RateLimitedError() from e
            logger.error(f"Gemini API error (model={model_name}): {e}")
            raise GenerationBackendError(f"AI generation failed: {e}") from e

        if not text:
            raise GenerationBackendError("AI generation failed: empty response")

        return GeneratedContent(
            text=text,
            tokens_used=estimate_generation_cost(full_prompt, text),
            model=model_name
        )


# Singleton-like access for easy import
_generator_instance = None


def get_content_generator() -> ContentGenerator:
    """Get or create the shared content generator."""
    global _generator_instance
    if _generator_instance is None:
        _generator_instance = GeminiContentGenerator()
    return _generator_instance
