"""
Custom exceptions for the fortune teller.

Provides specific exception types so each failure class can be handled
where the conversation loop expects it.
"""

from __future__ import annotations


class FortuneTellerError(Exception):
    """Base exception for all fortune teller errors."""

    pass


class TransportError(FortuneTellerError):
    """Raised when a remote endpoint cannot be reached or rejects a request."""

    pass


class ChatTransportError(TransportError):
    """
    Raised when the chat-completion request fails.

    ``attempt`` is set by the conversation loop to the 1-based request
    number that failed; it stays None when raised outside a turn.
    """

    def __init__(
        self, message: str, status: int | None = None, body: str = "", attempt: int | None = None
    ) -> None:
        self.status = status
        self.body = body
        self.attempt = attempt
        super().__init__(message)


class SpeechTransportError(TransportError):
    """Raised when the text-to-speech request fails."""

    pass


class ResponseParseError(FortuneTellerError):
    """Raised when no parsing strategy yields a usable reply."""

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"Could not parse a structured reply after {attempts} attempt(s)")


class ConfigError(FortuneTellerError):
    """Raised when the session configuration file is unreadable or invalid."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid session config {path}: {reason}")
