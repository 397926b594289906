"""
Structured Reply Extraction

Recovers a ``{spoken, score, insults}`` reply from a chat-completion payload
that may be wrapped in prose, mis-typed, or not JSON at all.

The parser is an ordered list of strategies; the first one that succeeds
wins and a failing strategy simply hands over to the next. Callers only ever
see a ParseResult or None.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError

from chat_core.json_value import JsonValue, parse_json_value
from chat_core.types import StructuredReply
from constants import DEFAULT_REPLY_SCORE, SCORE_MAX, SCORE_MIN
from content_scorer import ContentScorer

logger = logging.getLogger(__name__)

# *stage directions*, [bracketed cues] and (parenthetical asides)
_ACTION_MARKUP = re.compile(r"\*[^*]+\*|\[[^\]]+\]|\([^)]+\)")
_SPACE_RUNS = re.compile(r" {2,}")


def sanitize_spoken(text: str | None) -> str:
    """
    Strip stage directions from text meant to be spoken aloud.

    Example:
        >>> sanitize_spoken("*leans in* The cards  are [whispers] clear.")
        'The cards are clear.'
    """
    if not text or not text.strip():
        return ""

    without_actions = _ACTION_MARKUP.sub("", text.strip())
    return _SPACE_RUNS.sub(" ", without_actions).strip()


def clamp_score(score: int) -> int:
    return max(SCORE_MIN, min(SCORE_MAX, score))


def extract_json_block(text: str | None) -> str | None:
    """
    Return the first top-level ``{...}`` span of ``text``.

    Braces inside double-quoted string literals do not count, and a
    backslash escapes the character after it. Unmatched closing braces are
    ignored.

    Returns:
        The balanced block, or None when there is none
    """
    if not text:
        return None

    depth = 0
    start = -1
    in_string = False
    escaped = False
    for index, char in enumerate(text):
        if escaped:
            escaped = False
            continue
        if char == "\\":
            escaped = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue

        if char == "{":
            if depth == 0:
                start = index
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                return text[start : index + 1]

    return None


def build_reply_json(reply: StructuredReply) -> str:
    """Serialize a reply in the exact schema the model is asked to emit."""
    return json.dumps(
        {"spoken": reply.spoken, "score": reply.score, "insults": reply.insults},
        ensure_ascii=False,
        separators=(",", ":"),
    )


# === Strict schemas ===


class _Message(BaseModel):
    content: Optional[StrictStr] = None


class _Choice(BaseModel):
    message: Optional[_Message] = None


class _ChatCompletion(BaseModel):
    choices: list[_Choice] = Field(default_factory=list)


class _ReplyPayload(BaseModel):
    model_config = ConfigDict(strict=True)

    spoken: str
    score: int
    insults: bool


@dataclass(frozen=True)
class ParseResult:
    """
    A successfully parsed model turn.

    Attributes:
        reply: The structured reply
        json_text: Exact JSON text the reply was built from; synthesized when
                   the model answered in plain prose
        strategy: Name of the strategy that produced the reply
    """

    reply: StructuredReply
    json_text: str
    strategy: str


ContentStrategy = Callable[[str], Optional[str]]
ReplyStrategy = Callable[[str], Optional[StructuredReply]]


class ResponseParser:
    """Multi-strategy extraction of a StructuredReply from a raw response."""

    FALLBACK_STRATEGY = "no_json_fallback"

    def __init__(self, scorer: ContentScorer | None = None, log_failures: bool = False) -> None:
        """
        Args:
            scorer: Insult heuristic used when the model answered in prose
            log_failures: Log each failed strategy with the offending text
        """
        self.scorer = scorer or ContentScorer()
        self.log_failures = log_failures

        self.content_strategies: list[tuple[str, ContentStrategy]] = [
            ("strict_envelope", self._content_from_schema),
            ("tree_envelope", self._content_from_tree),
        ]
        self.reply_strategies: list[tuple[str, ReplyStrategy]] = [
            ("strict_reply", self._reply_from_schema),
            ("loose_reply", self._reply_from_tree),
        ]

    def parse(self, raw: str | bytes | None) -> ParseResult | None:
        """
        Parse a raw chat-completion response.

        Returns:
            ParseResult on success, None when no strategy yields a usable reply
        """
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        if not raw or not raw.strip():
            return None

        content = self.extract_content(raw)
        if content is None:
            self._log_failure("Response has no choices[0].message.content", raw)
            return None

        block = extract_json_block(content)
        if block is None:
            return self._reply_from_prose(content)

        for name, strategy in self.reply_strategies:
            reply = strategy(block)
            if reply is not None:
                return ParseResult(reply=reply, json_text=block, strategy=name)

        self._log_failure("JSON block did not decode to a usable reply", block)
        return None

    def extract_content(self, raw: str) -> str | None:
        """Assistant message text of the first choice, or None."""
        for _name, strategy in self.content_strategies:
            content = strategy(raw)
            if content:
                return content
        return None

    # === Content strategies ===

    def _content_from_schema(self, raw: str) -> str | None:
        try:
            completion = _ChatCompletion.model_validate_json(raw)
        except ValidationError as e:
            if self.log_failures:
                logger.debug("Strict envelope decode failed: %s", e.error_count())
            return None

        if not completion.choices or completion.choices[0].message is None:
            return None
        return completion.choices[0].message.content

    def _content_from_tree(self, raw: str) -> str | None:
        tree = parse_json_value(raw)
        if tree is None:
            return None

        choices = tree.get("choices")
        first = choices.at(0) if choices is not None else None
        message = first.get("message") if first is not None else None
        content = message.get("content") if message is not None else None
        return content.as_string() if content is not None else None

    # === Reply strategies ===

    def _reply_from_schema(self, block: str) -> StructuredReply | None:
        try:
            payload = _ReplyPayload.model_validate_json(block)
        except ValidationError:
            return None

        if not payload.spoken.strip():
            return None
        return StructuredReply(
            spoken=payload.spoken,
            score=clamp_score(payload.score),
            insults=payload.insults,
        )

    def _reply_from_tree(self, block: str) -> StructuredReply | None:
        tree = parse_json_value(block)
        if tree is None or tree.as_object() is None:
            self._log_failure("Parsed JSON is not an object", block)
            return None

        spoken_value = tree.get("spoken")
        if spoken_value is None:
            self._log_failure("JSON missing 'spoken' field", block)
            return None

        spoken = sanitize_spoken(spoken_value.as_string())
        if not spoken:
            self._log_failure("'spoken' field empty after sanitization", block)
            return None

        return StructuredReply(
            spoken=spoken,
            score=clamp_score(_coerce_score(tree.get("score"))),
            insults=_coerce_insults(tree.get("insults")),
        )

    def _reply_from_prose(self, content: str) -> ParseResult | None:
        spoken = sanitize_spoken(content)
        if not spoken:
            self._log_failure("Could not locate JSON in assistant content", content)
            return None

        reply = StructuredReply(
            spoken=spoken,
            score=DEFAULT_REPLY_SCORE,
            insults=self.scorer.detect_insults(spoken),
        )
        return ParseResult(reply=reply, json_text=build_reply_json(reply), strategy=self.FALLBACK_STRATEGY)

    def _log_failure(self, reason: str, text: str) -> None:
        if self.log_failures:
            logger.warning("%s:\n%s", reason, text)


def _coerce_score(value: JsonValue | None) -> int:
    """Integer, truncated float, or numeric string; anything else is 50."""
    if value is None:
        return DEFAULT_REPLY_SCORE

    number = value.as_number()
    if number is None:
        text = value.as_string()
        if text is None:
            return DEFAULT_REPLY_SCORE
        try:
            return int(text.strip())
        except ValueError:
            pass
        try:
            number = float(text.strip())
        except ValueError:
            return DEFAULT_REPLY_SCORE

    if isinstance(number, float):
        if not math.isfinite(number):
            return DEFAULT_REPLY_SCORE
        return math.trunc(number)
    return number


def _coerce_insults(value: JsonValue | None) -> bool:
    """Boolean, or the strings "true"/"false" in any case; otherwise False."""
    if value is None:
        return False

    flag = value.as_bool()
    if flag is not None:
        return flag

    text = value.as_string()
    if text is not None and text.strip().lower() in ("true", "false"):
        return text.strip().lower() == "true"
    return False
