"""
Data types for the chat protocol.

This module defines the core data structures used by the conversation loop:
- Role: Who authored a turn
- ConversationTurn: A single immutable message in the history
- ConversationHistory: The append-only, chronologically ordered transcript
- StructuredReply: The decoded {spoken, score, insults} payload of a model turn
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator


class Role(str, Enum):
    """Chat roles as they appear on the wire."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ConversationTurn:
    """
    A single message of the conversation.

    Attributes:
        role: Author of the message
        content: Message text exactly as sent to the model
    """

    role: Role
    content: str

    def to_message(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class StructuredReply:
    """
    The structured outcome of one model turn.

    Attributes:
        spoken: Words the fortune teller says aloud
        score: Model's quality assessment of the player's sentence (0-100)
        insults: Whether the model judged the player's sentence insulting
    """

    spoken: str
    score: int
    insults: bool


class ConversationHistory:
    """
    Chronological, append-only transcript of a session.

    The first entry is always the system prompt; it is set once when the
    history is created. Turns are never removed or replaced.
    """

    def __init__(self, system_prompt: str) -> None:
        self._turns: list[ConversationTurn] = [ConversationTurn(Role.SYSTEM, system_prompt)]

    @property
    def system_prompt(self) -> str:
        return self._turns[0].content

    def append(self, role: Role, content: str) -> ConversationTurn:
        """
        Append a turn and return it.

        Raises:
            ValueError: If ``role`` is SYSTEM (only the initial prompt may be)
        """
        if role is Role.SYSTEM:
            raise ValueError("The system prompt is fixed at session start")
        turn = ConversationTurn(role, content)
        self._turns.append(turn)
        return turn

    def as_messages(self) -> list[dict[str, str]]:
        """Render the full history as chat-completion ``messages``."""
        return [turn.to_message() for turn in self._turns]

    def turns(self) -> tuple[ConversationTurn, ...]:
        return tuple(self._turns)

    def count(self, role: Role) -> int:
        return sum(1 for turn in self._turns if turn.role is role)

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[ConversationTurn]:
        return iter(tuple(self._turns))

    def __getitem__(self, index: int) -> ConversationTurn:
        return self._turns[index]
