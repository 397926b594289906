"""
Audio output backends.

A player starts a clip and reports whether it is still sounding; the
PlaybackSession polls it once per tick and stops it on skip.
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Optional

from audio.clip import AudioClip

logger = logging.getLogger(__name__)


class AudioPlayer(ABC):
    """
    Interface the playback loop drives.

    ``loop`` and ``volume`` (0.0-1.0, None for full) apply from the next start().
    """

    loop: bool = False
    volume: Optional[float] = None

    @abstractmethod
    async def start(self, clip: AudioClip) -> None:
        """Begin playing ``clip`` and return immediately."""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Stop playback if any. Must be safe to call when idle."""
        pass

    @property
    @abstractmethod
    def is_playing(self) -> bool:
        pass


class FFplayPlayer(AudioPlayer):
    """
    Plays clips through an ``ffplay`` subprocess.

    The clip is written to a temporary file so the process can seek and the
    event loop never blocks on a pipe.
    """

    def __init__(self, executable: str = "ffplay", loop: bool = False, volume: Optional[float] = None) -> None:
        self.executable = executable
        self.loop = loop
        self.volume = volume
        self._process: asyncio.subprocess.Process | None = None
        self._temp_path: str | None = None

    def command(self, path: str) -> list[str]:
        """ffplay argument list for playing ``path`` with the current settings."""
        args = [self.executable, "-nodisp", "-autoexit", "-loglevel", "quiet"]
        if self.loop:
            args += ["-loop", "0"]
        if self.volume is not None:
            # ffplay takes 0-100
            args += ["-volume", str(round(min(1.0, max(0.0, self.volume)) * 100))]
        args.append(path)
        return args

    async def start(self, clip: AudioClip) -> None:
        await self.stop()

        fd, self._temp_path = tempfile.mkstemp(suffix=f".{clip.format}")
        with os.fdopen(fd, "wb") as f:
            f.write(clip.data)

        self._process = await asyncio.create_subprocess_exec(
            *self.command(self._temp_path),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
        logger.debug("ffplay started (pid %s)", self._process.pid)

    async def stop(self) -> None:
        process, self._process = self._process, None
        if process is not None and process.returncode is None:
            try:
                process.terminate()
            except ProcessLookupError:
                pass
            await process.wait()

        if self._temp_path is not None:
            try:
                os.remove(self._temp_path)
            except FileNotFoundError:
                pass
            self._temp_path = None

    @property
    def is_playing(self) -> bool:
        return self._process is not None and self._process.returncode is None
