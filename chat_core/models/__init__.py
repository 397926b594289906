"""
Chat-completion clients.

This module provides the transport layer between the conversation loop and
remote chat endpoints.
"""

from chat_core.models.base import BaseChatClient
from chat_core.models.http_chat import HTTPChatClient

__all__ = [
    "BaseChatClient",
    "HTTPChatClient",
]
