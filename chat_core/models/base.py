"""
Base class for chat-completion clients.

This module defines the interface the conversation loop talks to. A client
only moves bytes: it builds the request, sends it and returns the raw
response body. Interpreting that body is the ResponseParser's job.
"""

from __future__ import annotations

import asyncio
import os
from abc import ABC, abstractmethod
from typing import Any

from exceptions import ChatTransportError


class BaseChatClient(ABC):
    """
    Abstract base class for chat-completion endpoints.

    Subclasses must implement:
    - complete(): Send the conversation and return the raw response text
    - close(): Release network resources

    Provides shared functionality:
    - _get_api_key(): Resolve an optional API key from instance or environment
    - _handle_transport_error(): Wrap low-level failures in ChatTransportError
    """

    provider_name = "chat"

    def __init__(self, model: str, api_key: str | None = None) -> None:
        self.model = model
        self.api_key = api_key

    def build_payload(self, messages: list[dict[str, str]]) -> dict[str, Any]:
        """Request body for ``messages``: ``{"model": ..., "messages": [...]}``."""
        return {"model": self.model, "messages": list(messages)}

    def _get_api_key(self, env_var_name: str) -> str | None:
        """
        Resolve the API key from the instance or an environment variable.

        Local endpoints usually need no key, so a missing key is not an error.
        """
        return self.api_key or os.getenv(env_var_name) or None

    def _handle_transport_error(self, exception: Exception) -> None:
        """
        Re-raise a low-level failure as ChatTransportError.

        Raises:
            ChatTransportError: Always, chained to ``exception``
        """
        if isinstance(exception, ChatTransportError):
            raise exception
        if isinstance(exception, asyncio.TimeoutError):
            raise ChatTransportError(
                f"{self.provider_name} request timed out: {exception}"
            ) from exception
        raise ChatTransportError(
            f"{self.provider_name} request failed: {exception.__class__.__name__}: {exception}"
        ) from exception

    @abstractmethod
    async def complete(self, messages: list[dict[str, str]]) -> str:
        """
        Send the conversation and return the raw response body.

        Args:
            messages: Full history as ``[{"role": ..., "content": ...}, ...]``

        Returns:
            Response body text, unparsed

        Raises:
            ChatTransportError: On connection failure, timeout or non-2xx status
        """
        pass

    async def close(self) -> None:
        """Release network resources. Safe to call more than once."""
        pass

    async def __aenter__(self) -> BaseChatClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
