"""
Speech Playback

Sequences the audio for one spoken line: optionally synthesize it, show the
text, raise the talking indicator, play until done or skipped, and always
leave the indicator down and the player stopped.

Suspension points are the speech request, the clip decode (run in the
default executor), the optional start delay and one poll per tick while
audio plays. The skip signal is checked on every tick.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional, Union

from pydub.exceptions import CouldntDecodeError

from audio.clip import AudioClip
from audio.player import AudioPlayer
from constants import PLAYBACK_TICK_SECONDS
from exceptions import SpeechTransportError
from metrics import record_playback_outcome, track_tts_call

if TYPE_CHECKING:
    from sessions.view import DialogueView
    from tts_elevenlabs import ElevenLabsSpeechClient

logger = logging.getLogger(__name__)


class PlaybackOutcome(str, Enum):
    """Exactly one of these ends every play() call."""

    COMPLETED = "completed"
    SKIPPED = "skipped"
    SYNTHESIS_FAILED = "synthesis_failed"  # no credentials, request failed, or no audio


@dataclass(frozen=True)
class PreloadedClip:
    """Play an existing clip, optionally showing ``text`` while it plays."""

    clip: AudioClip
    text: Optional[str] = None


@dataclass(frozen=True)
class SynthesizeFromText:
    """Synthesize ``text`` with the speech client, then play it."""

    text: str


PlaybackSource = Union[PreloadedClip, SynthesizeFromText]


class SkipSignal:
    """
    Latched "skip" request from the player.

    A frontend calls trigger(); the playback loop consumes it. Presses made
    before a clip starts are discarded when the clip starts.
    """

    def __init__(self) -> None:
        self._pressed = False

    def trigger(self) -> None:
        self._pressed = True

    def clear(self) -> None:
        self._pressed = False

    def consume(self) -> bool:
        """Return whether skip was requested, resetting the latch."""
        pressed, self._pressed = self._pressed, False
        return pressed

    @property
    def is_set(self) -> bool:
        return self._pressed


@dataclass
class PlaybackSession:
    """
    State of a single clip being played.

    Created and released inside one SpeechPlayback.play() call.
    """

    clip: Optional[AudioClip]
    skipped: bool = False

    async def run(self, player: AudioPlayer, skip: SkipSignal, tick_seconds: float) -> None:
        skip.clear()
        await player.start(self.clip)
        while player.is_playing:
            if skip.consume():
                await player.stop()
                self.skipped = True
                break
            await asyncio.sleep(tick_seconds)

    async def release(self, player: AudioPlayer) -> None:
        await player.stop()
        self.clip = None


class SpeechPlayback:
    """
    Plays spoken lines for the conversation loop.

    Without a speech client (or without credentials) it runs in text-only
    mode: lines are displayed and the talking indicator never rises.
    """

    def __init__(
        self,
        view: DialogueView,
        player: AudioPlayer,
        speech_client: ElevenLabsSpeechClient | None = None,
        skip_signal: SkipSignal | None = None,
        tick_seconds: float = PLAYBACK_TICK_SECONDS,
        start_delay: float = 0.0,
    ) -> None:
        self.view = view
        self.player = player
        self.speech_client = speech_client
        self.skip_signal = skip_signal or SkipSignal()
        self.tick_seconds = tick_seconds
        self.start_delay = max(0.0, start_delay)
        self.talking = False

    def _set_talking(self, talking: bool) -> None:
        self.talking = talking
        self.view.set_talking(talking)

    async def play(self, source: PlaybackSource) -> PlaybackOutcome:
        """
        Play one line.

        Args:
            source: A preloaded clip or text to synthesize

        Returns:
            COMPLETED, SKIPPED or SYNTHESIS_FAILED. Never raises for speech
            or decoding failures; the talking indicator is down on return.
        """
        session: PlaybackSession | None = None
        outcome = PlaybackOutcome.SYNTHESIS_FAILED
        try:
            if isinstance(source, SynthesizeFromText):
                clip = await self._synthesize(source.text)
            else:
                if self.start_delay:
                    await asyncio.sleep(self.start_delay)
                clip = source.clip

            if source.text:
                self.view.show_text(source.text)

            if clip is not None and await self._has_audio(clip):
                session = PlaybackSession(clip=clip)
                self._set_talking(True)
                await session.run(self.player, self.skip_signal, self.tick_seconds)
                outcome = PlaybackOutcome.SKIPPED if session.skipped else PlaybackOutcome.COMPLETED
        except OSError as e:
            # Audio output device or ffplay missing; the line was still shown
            logger.error("Audio output failed: %s", e)
        finally:
            self._set_talking(False)
            if session is not None:
                await session.release(self.player)

        record_playback_outcome(outcome.value)
        return outcome

    async def hold_text(self, text: str, seconds: float) -> bool:
        """
        Display ``text`` for ``seconds`` unless skipped.

        Returns:
            True if the player skipped before the time elapsed
        """
        self.view.show_text(text)
        self.skip_signal.clear()

        loop = asyncio.get_running_loop()
        deadline = loop.time() + seconds
        while loop.time() < deadline:
            if self.skip_signal.consume():
                return True
            await asyncio.sleep(self.tick_seconds)
        return False

    async def _synthesize(self, text: str) -> AudioClip | None:
        if self.speech_client is None or not self.speech_client.is_enabled():
            logger.debug("Speech disabled, showing text only")
            return None

        try:
            with track_tts_call():
                return await self.speech_client.synthesize(text)
        except SpeechTransportError as e:
            logger.error("Speech synthesis failed: %s", e)
            return None

    async def _has_audio(self, clip: AudioClip) -> bool:
        if clip.is_empty:
            logger.error("Received empty audio clip")
            return False
        loop = asyncio.get_running_loop()
        try:
            # pydub decodes through an ffmpeg subprocess
            duration = await loop.run_in_executor(None, clip.duration_seconds)
        except (CouldntDecodeError, OSError) as e:
            logger.error("Could not decode audio clip (%s): %s", clip.format, e)
            return False
        if duration <= 0:
            logger.error("Received zero-length audio clip")
            return False
        return True
