"""
Audio clip handle.

Wraps encoded audio bytes (MP3 from ElevenLabs, or a preloaded intro file)
and measures their duration with pydub on first use.
"""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from pathlib import Path

from pydub import AudioSegment


@dataclass
class AudioClip:
    """
    Encoded audio ready to hand to an AudioPlayer.

    Attributes:
        data: Encoded audio bytes
        format: Container/codec name understood by ffmpeg ("mp3", "wav", ...)
        duration: Length in seconds; decoded lazily when None
    """

    data: bytes
    format: str = "mp3"
    duration: float | None = None

    @classmethod
    def from_file(cls, path: str | Path) -> AudioClip:
        """Load a clip from disk, taking the format from the file suffix."""
        path = Path(path)
        return cls(data=path.read_bytes(), format=path.suffix.lstrip(".").lower() or "mp3")

    @property
    def is_empty(self) -> bool:
        return not self.data

    def duration_seconds(self) -> float:
        """
        Clip length in seconds.

        Raises:
            pydub.exceptions.CouldntDecodeError: If the bytes are not valid audio
            OSError: If ffmpeg is not available to decode the format
        """
        if self.duration is None:
            if self.is_empty:
                self.duration = 0.0
            else:
                segment = AudioSegment.from_file(BytesIO(self.data), format=self.format)
                self.duration = segment.duration_seconds
        return self.duration
