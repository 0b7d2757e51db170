"""Google Gemini completion provider."""

import asyncio
import logging

import httpx
from google import genai
from google.genai import errors, types

from catalyst.core.config import settings
from catalyst.core.errors import UpstreamFailure
from catalyst.services.llm.base import (
    MAX_OUTPUT_TOKENS,
    NO_ANSWER_MESSAGE,
    TEMPERATURE,
    TOP_K,
    TOP_P,
    BaseLLMProvider,
)

logger = logging.getLogger(__name__)


class GeminiProvider(BaseLLMProvider):
    name = "gemini"

    def __init__(self, client: genai.Client | None = None, timeout: float | None = None):
        self.timeout = timeout if timeout is not None else settings.llm_timeout
        self.client = client or genai.Client(
            api_key=settings.gemini_api_key,
            http_options=types.HttpOptions(timeout=int(self.timeout * 1000)),
        )
        self.model = settings.gemini_model
        self.config = types.GenerateContentConfig(
            temperature=TEMPERATURE,
            top_k=TOP_K,
            top_p=TOP_P,
            max_output_tokens=MAX_OUTPUT_TOKENS,
        )

    async def complete(self, prompt: str) -> str:
        try:
            response = await asyncio.wait_for(
                self.client.aio.models.generate_content(
                    model=self.model,
                    contents=[{"role": "user", "parts": [{"text": prompt}]}],
                    config=self.config,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise UpstreamFailure(f"Gemini timed out after {self.timeout}s") from e
        except errors.APIError as e:
            raise UpstreamFailure(f"Gemini returned {e.code}: {e.message}") from e
        except httpx.HTTPError as e:
            raise UpstreamFailure(f"Gemini request failed: {e}") from e

        usage = response.usage_metadata
        if usage:
            logger.debug(
                f"Gemini tokens: prompt={usage.prompt_token_count} "
                f"response={usage.candidates_token_count}"
            )

        if not response.candidates:
            return NO_ANSWER_MESSAGE
        return response.text or NO_ANSWER_MESSAGE
