"""
Audio handling for spoken lines and background music.

- AudioClip: encoded audio plus lazily decoded duration
- AudioPlayer / FFplayPlayer: output backends
- SpeechPlayback / PlaybackSession: skip-aware sequencing of one line
- BackgroundMusic: looping ambience on its own player
"""

from audio.clip import AudioClip
from audio.music import BackgroundMusic
from audio.player import AudioPlayer, FFplayPlayer
from audio.playback import (
    PlaybackOutcome,
    PlaybackSession,
    PreloadedClip,
    SkipSignal,
    SpeechPlayback,
    SynthesizeFromText,
)

__all__ = [
    "AudioClip",
    "AudioPlayer",
    "BackgroundMusic",
    "FFplayPlayer",
    "PlaybackOutcome",
    "PlaybackSession",
    "PreloadedClip",
    "SkipSignal",
    "SpeechPlayback",
    "SynthesizeFromText",
]
