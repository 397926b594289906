"""
Background music.

A looping ambience track on its own player, independent of the speech
player, so a skipped or finished line never touches the music.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from audio.clip import AudioClip
from audio.player import AudioPlayer, FFplayPlayer

if TYPE_CHECKING:
    from config import SessionConfig

logger = logging.getLogger(__name__)


def clamp_volume(volume: float) -> float:
    return min(1.0, max(0.0, volume))


class BackgroundMusic:
    """
    Plays the session's background track.

    Attributes:
        player: Dedicated output; never shared with speech playback
        clip: Track currently assigned, or None
        source: Path the track was loaded from (None for clips passed to play())
    """

    def __init__(self, player: AudioPlayer | None = None) -> None:
        self.player = player or FFplayPlayer(loop=True)
        self.clip: Optional[AudioClip] = None
        self.source: Optional[str] = None

    @property
    def is_playing(self) -> bool:
        return self.player.is_playing

    async def configure(self, config: SessionConfig) -> None:
        """
        Apply the session's music settings.

        A changed track replaces the old one; it only starts here when
        ``play_background_music_on_start`` is set. No track stops the music.
        """
        if not config.has_background_music():
            await self._clear()
            return

        should_restart = config.background_music != self.source
        if should_restart:
            clip = self._load(config.background_music)
            if clip is None:
                await self._clear()
                return
            self.clip, self.source = clip, config.background_music

        self.player.volume = clamp_volume(config.background_music_volume)
        self.player.loop = config.background_music_loop

        if config.play_background_music_on_start:
            if should_restart and self.is_playing:
                await self.player.stop()
            if not self.is_playing:
                await self._start()
        elif should_restart and self.is_playing:
            await self.player.stop()

    async def play(self, clip: AudioClip | None = None, loop: bool = True, volume: float | None = None) -> None:
        """
        Start (or keep) the music playing.

        Args:
            clip: Track to switch to; None keeps the assigned one
            loop: Repeat the track until stopped
            volume: 0.0-1.0, clamped; None keeps the current volume
        """
        if clip is not None and clip != self.clip:
            if self.is_playing:
                await self.player.stop()
            self.clip, self.source = clip, None

        if self.clip is None:
            return

        self.player.loop = loop
        if volume is not None:
            self.player.volume = clamp_volume(volume)

        if not self.is_playing:
            await self._start()

    async def stop(self) -> None:
        await self.player.stop()

    async def _clear(self) -> None:
        await self.player.stop()
        self.clip = None
        self.source = None

    async def _start(self) -> None:
        try:
            await self.player.start(self.clip)
        except OSError as e:
            logger.error("Background music failed to start: %s", e)
            return
        logger.debug("Background music started (loop=%s, volume=%s)", self.player.loop, self.player.volume)

    @staticmethod
    def _load(path: str) -> AudioClip | None:
        try:
            return AudioClip.from_file(path)
        except OSError as e:
            logger.warning("Could not load background music %s: %s", path, e)
            return None
