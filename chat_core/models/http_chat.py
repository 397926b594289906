"""
OpenAI-compatible chat-completion client over aiohttp.

Works with any endpoint accepting ``{"model", "messages"}`` as a JSON POST
(OpenAI, Ollama, LM Studio, llama.cpp server...).
"""

from __future__ import annotations

import asyncio
import logging

import aiohttp

from chat_core.models.base import BaseChatClient
from exceptions import ChatTransportError

logger = logging.getLogger(__name__)

# Error bodies are only kept for logs
_MAX_ERROR_BODY = 500


class HTTPChatClient(BaseChatClient):
    """
    Chat client for OpenAI-compatible HTTP endpoints.

    Attributes:
        endpoint: Full URL of the chat-completions route
        model: Model name sent with every request
        api_key: Optional bearer token (defaults to CHAT_API_KEY env variable)
    """

    provider_name = "chat endpoint"

    def __init__(
        self,
        endpoint: str,
        model: str,
        api_key: str | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        super().__init__(model=model, api_key=api_key)
        self.endpoint = endpoint
        self._session = session
        self._owns_session = session is None

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        api_key = self._get_api_key("CHAT_API_KEY")
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def complete(self, messages: list[dict[str, str]]) -> str:
        payload = self.build_payload(messages)
        session = self._get_session()
        logger.debug("POST %s (%d messages, model=%s)", self.endpoint, len(messages), self.model)

        try:
            async with session.post(self.endpoint, json=payload, headers=self._headers()) as response:
                # Undecodable bytes become U+FFFD and are left to the parser
                body = await response.text(errors="replace")
                if not 200 <= response.status < 300:
                    raise ChatTransportError(
                        f"{self.provider_name} returned HTTP {response.status}",
                        status=response.status,
                        body=body[:_MAX_ERROR_BODY],
                    )
                return body
        except (aiohttp.ClientError, asyncio.TimeoutError, ChatTransportError) as e:
            self._handle_transport_error(e)

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
