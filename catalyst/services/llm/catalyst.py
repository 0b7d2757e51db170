"""Catalyst IA text endpoint provider (query-string HTTP API)."""

import logging
from typing import Any

import httpx

from catalyst.core.config import settings
from catalyst.core.errors import UpstreamFailure
from catalyst.services.llm.base import NO_ANSWER_MESSAGE, BaseLLMProvider

logger = logging.getLogger(__name__)


class CatalystProvider(BaseLLMProvider):
    name = "catalyst"

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None, timeout: float | None = None):
        self.url = settings.catalyst_api_url
        self._api_key = settings.catalyst_api_key
        self._transport = transport
        self.timeout = httpx.Timeout(timeout if timeout is not None else settings.llm_timeout)

    def _params(self, prompt: str) -> dict[str, str]:
        if not self._api_key:
            raise UpstreamFailure("Catalyst API key not configured. Set CATALYST_CATALYST_API_KEY.")
        return {"query": prompt, "apikey": self._api_key}

    async def complete(self, prompt: str) -> str:
        params = self._params(prompt)
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                resp = await client.get(self.url, params=params)
        except httpx.TimeoutException as e:
            raise UpstreamFailure("Catalyst API timed out") from e
        except httpx.HTTPError as e:
            raise UpstreamFailure(f"Catalyst API request failed: {e}") from e

        try:
            data: Any = resp.json()
        except ValueError as e:
            raise UpstreamFailure(f"Catalyst API returned non-JSON body (HTTP {resp.status_code})") from e

        if not isinstance(data, dict):
            raise UpstreamFailure("Catalyst API returned an unexpected payload")
        if resp.status_code >= 400 or not data.get("status"):
            raise UpstreamFailure(data.get("message") or f"Catalyst API returned HTTP {resp.status_code}")

        answer = data.get("resposta")
        if not isinstance(answer, str) or not answer.strip():
            return NO_ANSWER_MESSAGE
        return answer
