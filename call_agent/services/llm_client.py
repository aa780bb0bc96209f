"""
OpenRouter chat-completions client.

Provider failures never raise: every call returns a ProviderResult whose
status tells the intent resolver whether to use the text or fall back.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx

from call_agent.config import ProviderConfig, settings

logger = logging.getLogger(__name__)


class ProviderStatus(str, Enum):
    OK = "ok"
    RATE_LIMITED = "rate_limited"
    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"
    DISABLED = "disabled"


@dataclass
class ProviderResult:
    status: ProviderStatus
    text: str = ""
    status_code: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.status == ProviderStatus.OK and bool(self.text)


class OpenRouterClient:
    """Async client for an OpenAI-compatible chat completions endpoint."""

    def __init__(self, config: Optional[ProviderConfig] = None) -> None:
        self._config = config or settings.provider
        self._client = httpx.AsyncClient(
            timeout=self._config.timeout_seconds,
            headers={
                "Authorization": f"Bearer {self._config.api_key}",
                "Content-Type": "application/json",
                "HTTP-Referer": self._config.referer,
                "X-Title": settings.business.name,
            },
        )

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    async def complete(
        self,
        system_prompt: str,
        user_utterance: str,
        history: Optional[list[str]] = None,
    ) -> ProviderResult:
        """Send one classification request and return the reply text or a degraded status."""
        if not self.enabled:
            return ProviderResult(status=ProviderStatus.DISABLED)

        messages = [{"role": "system", "content": system_prompt}]
        if history:
            messages.append(
                {"role": "system", "content": "Recent conversation:\n" + "\n".join(history)}
            )
        messages.append({"role": "user", "content": user_utterance})
        payload = {
            "model": self._config.model,
            "messages": messages,
            "temperature": self._config.temperature,
            "max_tokens": self._config.max_tokens,
        }

        try:
            response = await self._client.post(self._config.api_url, json=payload)
        except httpx.TimeoutException:
            logger.warning("Provider request timed out after %.1fs", self._config.timeout_seconds)
            return ProviderResult(status=ProviderStatus.TIMEOUT)
        except httpx.HTTPError as e:
            logger.warning("Provider request failed: %s", e)
            return ProviderResult(status=ProviderStatus.UNAVAILABLE)

        if response.status_code == 429:
            logger.warning("Provider rate limited the request")
            return ProviderResult(status=ProviderStatus.RATE_LIMITED, status_code=429)
        if response.status_code >= 400:
            logger.warning("Provider returned HTTP %d: %s", response.status_code, response.text[:200])
            return ProviderResult(
                status=ProviderStatus.UNAVAILABLE, status_code=response.status_code
            )

        try:
            data = response.json()
            text = data["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError):
            logger.warning("Provider returned an unexpected payload")
            return ProviderResult(
                status=ProviderStatus.UNAVAILABLE, status_code=response.status_code
            )
        return ProviderResult(
            status=ProviderStatus.OK, text=text.strip(), status_code=response.status_code
        )

    async def aclose(self) -> None:
        await self._client.aclose()
