"""
Conversation State Machine

Drives one fortune-telling session: the startup intro, player submissions,
the bounded chat/parse retry loop and playback of each reply.

The machine owns the conversation history and its state; nothing else
writes to either. Every exit path (success, parse failure, transport
failure, skip) returns the machine to IDLE with input re-enabled.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from audio.clip import AudioClip
from audio.playback import PlaybackOutcome, PreloadedClip, SynthesizeFromText
from chat_core.response_parser import ParseResult, ResponseParser, sanitize_spoken
from chat_core.types import ConversationHistory, Role, StructuredReply
from constants import (
    FORMAT_INSTRUCTIONS,
    INTRO_MAX_SECONDS,
    INTRO_MIN_SECONDS,
    INTRO_SECONDS_PER_CHAR,
    PREPARING_TEXT,
    THINKING_TEXT,
)
from content_scorer import ContentScorer
from exceptions import ChatTransportError, ResponseParseError
from logging_config import StructuredLoggerAdapter
from metrics import record_parse_attempt, record_turn_outcome, track_chat_call

if TYPE_CHECKING:
    from audio.playback import SpeechPlayback
    from chat_core.models.base import BaseChatClient
    from config import SessionConfig
    from sessions.view import DialogueView

logger = logging.getLogger(__name__)


class ConversationState(str, Enum):
    IDLE = "idle"
    INTRO = "intro"
    AWAITING_INTRO_CHOICE = "awaiting_intro_choice"
    REQUEST_IN_FLIGHT = "request_in_flight"
    PARSE_RETRY = "parse_retry"
    PLAYING_SPEECH = "playing_speech"


BUSY_STATES = frozenset(
    {
        ConversationState.INTRO,
        ConversationState.REQUEST_IN_FLIGHT,
        ConversationState.PARSE_RETRY,
        ConversationState.PLAYING_SPEECH,
    }
)


class TurnOutcome(str, Enum):
    COMPLETED = "completed"
    EMPTY_SPOKEN = "empty_spoken"
    TRANSPORT_FAILED = "transport_failed"
    PARSE_FAILED = "parse_failed"
    IGNORED = "ignored"


@dataclass(frozen=True)
class TurnResult:
    """
    What happened during one advance_conversation() call.

    Attributes:
        outcome: How the turn ended
        reply: Parsed reply (None unless a parse succeeded)
        attempts: Chat requests sent during the turn
        playback: Playback outcome when speech was played
    """

    outcome: TurnOutcome
    reply: Optional[StructuredReply] = None
    attempts: int = 0
    playback: Optional[PlaybackOutcome] = None


def build_system_prompt(base_prompt: str) -> str:
    """Append the reply format instructions to the character prompt."""
    if not base_prompt or not base_prompt.strip():
        return FORMAT_INSTRUCTIONS
    return f"{base_prompt.strip()}\n\n{FORMAT_INSTRUCTIONS}"


def intro_hold_seconds(text: str) -> float:
    """How long text-only intro lines stay on screen."""
    seconds = len(text) * INTRO_SECONDS_PER_CHAR
    return max(INTRO_MIN_SECONDS, min(INTRO_MAX_SECONDS, seconds))


def frame_player_message(
    text: str, score: int, insults: bool, first_answer: bool = False, user_prompt: str = ""
) -> str:
    """
    Wrap the player's words with the heuristic annotation the model reacts to.

    The first answer after the intro question carries the configured user
    prompt (or a continue-the-reading cue when none is configured).
    """
    said = f'The visitor says: "{text}" (Quality score: {score}/100, Contains insults: {insults})'
    if not first_answer:
        return f"{said}. React in character."
    if not user_prompt or not user_prompt.strip():
        return f"{said}. Continue the reading with eerie insight."
    return f"{user_prompt}\n{said}."


class ConversationStateMachine:
    """
    Turn loop for the fortune teller.

    Usage:
        machine = ConversationStateMachine(config, chat_client, playback, view)
        await machine.run_startup_sequence()
        await machine.submit_input("Bonjour madame, que vois-tu ?")
    """

    def __init__(
        self,
        config: SessionConfig,
        chat_client: BaseChatClient,
        playback: SpeechPlayback,
        view: DialogueView,
        parser: ResponseParser | None = None,
        scorer: ContentScorer | None = None,
    ) -> None:
        self.config = config
        self.chat_client = chat_client
        self.playback = playback
        self.view = view
        self.scorer = scorer or ContentScorer()
        self.parser = parser or ResponseParser(scorer=self.scorer, log_failures=config.log_transcript)

        self.history = ConversationHistory(build_system_prompt(config.system_prompt))
        self.state = ConversationState.IDLE
        self.last_result: TurnResult | None = None

        self.session_id = secrets.token_urlsafe(16)
        self.logger = StructuredLoggerAdapter(
            logger, {"session_id": self.session_id, "model": config.llm_model}
        )
        self.logger.info_event("session_created", "Fortune teller session created")

    @property
    def is_busy(self) -> bool:
        return self.state in BUSY_STATES

    # === Player input ===

    async def submit_input(self, text: str) -> TurnResult:
        """
        Handle a line typed by the player.

        Ignored while busy or when blank. The trimmed line is recorded as a
        user turn, then a second user turn carrying the score and insult flag
        starts the model request.
        """
        if self.is_busy or not text or not text.strip():
            return TurnResult(TurnOutcome.IGNORED)

        trimmed = text.strip()
        score = self.scorer.score(trimmed)
        insults = self.scorer.detect_insults(trimmed)

        self.view.show_text(f"You: {trimmed}\n\nScore: {score} | Insults: {insults}\n\n{THINKING_TEXT}")
        self.view.set_input_interactable(False)
        # The raw line goes in first; the framed copy follows as the turn's message
        self.history.append(Role.USER, trimmed)

        first_answer = self.state is ConversationState.AWAITING_INTRO_CHOICE
        if first_answer:
            self.state = ConversationState.IDLE

        framed = frame_player_message(
            trimmed, score, insults, first_answer=first_answer, user_prompt=self.config.user_prompt
        )
        self.logger.debug_event("player_input", "Player submitted input", score=score, insults=insults)
        return await self.advance_conversation(framed)

    # === Startup ===

    async def run_startup_sequence(self) -> TurnResult | None:
        """
        Play the intro, then either ask the intro question or open the reading.

        Returns:
            The opening turn's result, or None when the machine now waits for
            the answer to the intro question (or was busy)
        """
        if self.is_busy:
            return None

        self.state = ConversationState.INTRO
        self.view.show_text(PREPARING_TEXT)
        self.view.set_input_visible(False)
        self.view.set_input_interactable(False)

        try:
            await self._play_intro()

            if self.config.has_intro_question():
                self.view.set_input_visible(True)
                await self._ask_intro_question()
                self.view.set_input_interactable(True)
                self.state = ConversationState.AWAITING_INTRO_CHOICE
                self.logger.info_event("intro_question_asked", "Waiting for the intro answer")
                return None
        finally:
            if self.state is ConversationState.INTRO:
                self.state = ConversationState.IDLE

        return await self.advance_conversation(self.config.user_prompt)

    async def _play_intro(self) -> None:
        intro_text = self.config.intro_spoken.strip()
        clip = self._load_clip(self.config.intro_clip)

        if clip is not None:
            await self.playback.play(PreloadedClip(clip, text=intro_text or None))
        elif intro_text:
            skipped = await self.playback.hold_text(intro_text, intro_hold_seconds(intro_text))
            if skipped:
                self.logger.debug_event("intro_skipped", "Player skipped the intro")

        if intro_text:
            self.history.append(Role.ASSISTANT, intro_text)

    async def _ask_intro_question(self) -> None:
        question = self.config.intro_question.strip()
        clip = self._load_clip(self.config.intro_question_clip)

        if clip is not None:
            await self.playback.play(PreloadedClip(clip, text=question or None))
        else:
            self.view.show_text(question)

        if question:
            self.history.append(Role.ASSISTANT, question)

    def _load_clip(self, path: str | None) -> AudioClip | None:
        if not path:
            return None
        try:
            return AudioClip.from_file(path)
        except OSError as e:
            self.logger.warning_event("clip_load_failed", f"Could not load audio clip: {e}", path=path)
            return None

    # === Turn loop ===

    async def advance_conversation(self, user_message: str | None = None) -> TurnResult:
        """
        Send the history to the model and play its reply.

        Args:
            user_message: Appended as a user turn when not blank

        Returns:
            TurnResult; no transport or parse error escapes this method
        """
        if self.is_busy:
            self.logger.debug_event("turn_ignored", "Turn requested while busy", state=self.state.value)
            return TurnResult(TurnOutcome.IGNORED)

        if user_message and user_message.strip():
            self.history.append(Role.USER, user_message)

        self.state = ConversationState.REQUEST_IN_FLIGHT
        self.view.set_input_visible(False)

        try:
            result = await self._run_turn()
        finally:
            self.state = ConversationState.IDLE
            self.view.set_talking(False)
            self.view.set_input_visible(True)
            self.view.set_input_interactable(True)

        if result.reply is not None and result.outcome is TurnOutcome.COMPLETED:
            self.view.show_text(sanitize_spoken(result.reply.spoken))

        record_turn_outcome(result.outcome.value)
        self.last_result = result
        return result

    async def _run_turn(self) -> TurnResult:
        try:
            parsed, attempts = await self._request_reply()
        except ChatTransportError as e:
            self.logger.error_event(
                "chat_transport_failed", f"Chat request failed: {e}", status=e.status, attempt=e.attempt
            )
            return TurnResult(TurnOutcome.TRANSPORT_FAILED, attempts=e.attempt or 0)
        except ResponseParseError as e:
            self.logger.error_event("parse_failed", str(e), attempts=e.attempts)
            return TurnResult(TurnOutcome.PARSE_FAILED, attempts=e.attempts)

        self.history.append(Role.ASSISTANT, parsed.json_text)
        reply = parsed.reply

        spoken = sanitize_spoken(reply.spoken)
        if not spoken:
            self.logger.warning_event("empty_spoken", "Received empty spoken text", attempts=attempts)
            self.view.show_text("")
            return TurnResult(TurnOutcome.EMPTY_SPOKEN, reply=reply, attempts=attempts)

        self.view.show_text("")
        self.state = ConversationState.PLAYING_SPEECH
        playback = await self.playback.play(SynthesizeFromText(spoken))
        self.logger.info_event(
            "turn_completed",
            "Fortune teller replied",
            score=reply.score,
            insults=reply.insults,
            attempts=attempts,
            playback=playback.value,
        )
        return TurnResult(TurnOutcome.COMPLETED, reply=reply, attempts=attempts, playback=playback)

    async def _request_reply(self) -> tuple[ParseResult, int]:
        """
        Request and parse a reply, reminding the model of the format on failure.

        Returns:
            (parse result, attempts used)

        Raises:
            ChatTransportError: On the first transport failure (never retried)
            ResponseParseError: When every attempt failed to parse
        """
        max_attempts = self.config.max_attempts
        for attempt in range(1, max_attempts + 1):
            self.state = ConversationState.REQUEST_IN_FLIGHT
            try:
                with track_chat_call(self.chat_client.model):
                    raw = await self.chat_client.complete(self.history.as_messages())
            except ChatTransportError as e:
                e.attempt = attempt
                raise

            if self.config.log_transcript:
                self.logger.debug_event("chat_response", raw, attempt=attempt)

            parsed = self.parser.parse(raw)
            if parsed is not None:
                record_parse_attempt("success", parsed.strategy)
                return parsed, attempt

            record_parse_attempt("failure")
            if attempt < max_attempts:
                self.logger.warning_event(
                    "parse_retry", "Reply was not in the expected format, retrying", attempt=attempt
                )
                self.history.append(Role.USER, self.config.retry_reminder)
                self.state = ConversationState.PARSE_RETRY

        raise ResponseParseError(max_attempts)
