"""
Chat Core - conversation data types, chat transport and reply parsing.

This package holds everything between the player's turn and a usable model
reply: the append-only history, the chat-completion clients, and the
tolerant parser that turns free-form model output into a StructuredReply.
"""

from chat_core.json_value import JsonValue, parse_json_value
from chat_core.models.base import BaseChatClient
from chat_core.response_parser import ParseResult, ResponseParser, extract_json_block, sanitize_spoken
from chat_core.types import ConversationHistory, ConversationTurn, Role, StructuredReply

__all__ = [
    "BaseChatClient",
    "ConversationHistory",
    "ConversationTurn",
    "JsonValue",
    "ParseResult",
    "ResponseParser",
    "Role",
    "StructuredReply",
    "extract_json_block",
    "parse_json_value",
    "sanitize_spoken",
]

__version__ = "0.1.0"
