"""
Text-completion gateway for the Groq chat completions API.

One request per call, no streaming and no retry. Every failure, including a
missing API key, surfaces as GatewayError.
"""

import logging
from typing import Optional

import httpx

from smartnotes import config
from smartnotes.config import log_event
from smartnotes.errors import GatewayError

logger = logging.getLogger("smartnotes.ai")


class AIGateway:
    def __init__(
        self,
        api_key: Optional[str],
        model: str = config.DEFAULT_GROQ_MODEL,
        base_url: str = config.DEFAULT_GROQ_BASE_URL,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        if not api_key:
            log_event(logging.ERROR, "ai_credentials_missing", logger, hint="set GROQ_API_KEY")

    @classmethod
    def from_env(cls, transport: Optional[httpx.AsyncBaseTransport] = None) -> "AIGateway":
        return cls(
            api_key=config.groq_api_key(),
            model=config.groq_model(),
            base_url=config.groq_base_url(),
            timeout=config.ai_timeout_seconds(),
            transport=transport,
        )

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        if not self.api_key:
            raise GatewayError("AI service is not configured: missing API key")

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        log_event(logging.INFO, "ai_request", logger, model=self.model, chars=len(user_prompt))
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(f"{self.base_url}/chat/completions", json=payload, headers=headers)
        except httpx.HTTPError as exc:
            log_event(logging.ERROR, "ai_transport_error", logger, error=exc)
            raise GatewayError(f"AI service unreachable: {exc}") from exc

        if not response.is_success:
            log_event(logging.ERROR, "ai_http_error", logger, status=response.status_code)
            raise GatewayError(
                f"AI service failed to generate content (HTTP {response.status_code})",
                status_code=response.status_code,
            )

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            log_event(logging.ERROR, "ai_malformed_response", logger, error=exc)
            raise GatewayError("AI service returned a malformed response") from exc

        if not isinstance(content, str):
            raise GatewayError("AI service returned a malformed response")
        return content
