"""
ElevenLabs Text-to-Speech Integration

Thin adapter around the ElevenLabs SDK: builds the synthesis request for a
line of dialogue and returns the MP3 bytes as an AudioClip. Deciding what to
do when synthesis fails is left to the playback layer.
"""

from __future__ import annotations

import asyncio
import logging
from io import BytesIO
from typing import Any, Optional

from elevenlabs import VoiceSettings
from elevenlabs.client import ElevenLabs

from audio.clip import AudioClip
from constants import (
    ALLOWED_STABILITY_VALUES,
    ELEVENLABS_DEFAULT_MODEL_ID,
    ELEVENLABS_DEFAULT_SIMILARITY_BOOST,
    ELEVENLABS_DEFAULT_STABILITY,
    ELEVENLABS_OUTPUT_FORMAT,
)
from exceptions import SpeechTransportError

logger = logging.getLogger(__name__)


def snap_stability(value: float) -> float:
    """
    Clamp to [0, 1] and snap to the nearest stability the voice model accepts.

    Ties resolve to the lower value.

    Example:
        >>> snap_stability(0.3)
        0.5
    """
    clamped = max(0.0, min(1.0, value))
    return min(ALLOWED_STABILITY_VALUES, key=lambda allowed: abs(clamped - allowed))


def clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, value))


class ElevenLabsSpeechClient:
    """Synthesizes dialogue lines with one configured ElevenLabs voice."""

    def __init__(
        self,
        api_key: Optional[str],
        voice_id: Optional[str],
        model_id: str = ELEVENLABS_DEFAULT_MODEL_ID,
        stability: float = ELEVENLABS_DEFAULT_STABILITY,
        similarity_boost: float = ELEVENLABS_DEFAULT_SIMILARITY_BOOST,
        client: Any = None,
    ) -> None:
        """
        Args:
            api_key: ElevenLabs API key; blank disables synthesis
            voice_id: Voice to speak with; blank disables synthesis
            model_id: ElevenLabs model identifier
            stability: Requested stability, snapped to 0.0/0.5/1.0
            similarity_boost: Requested similarity boost, clamped to [0, 1]
            client: Pre-built SDK client (tests inject a fake here)
        """
        self.api_key = (api_key or "").strip()
        self.voice_id = (voice_id or "").strip()
        self.model_id = model_id
        self.stability = snap_stability(stability)
        self.similarity_boost = clamp_unit(similarity_boost)
        self.client = client

        if not self.voice_id:
            logger.warning("ElevenLabs voice ID not set (config or ELEVENLABS_VOICE_ID); audio will be silent")
        if not self.api_key:
            logger.warning("ElevenLabs API key not set (config or ELEVENLABS_API_KEY); audio will be silent")

        if self.client is None and self.api_key and self.voice_id:
            self.client = ElevenLabs(api_key=self.api_key)
            logger.info("ElevenLabs TTS enabled (model %s)", self.model_id)

    def is_enabled(self) -> bool:
        """Check if credentials are present and a client is available."""
        return bool(self.api_key and self.voice_id) and self.client is not None

    def build_request(self, text: str) -> dict[str, Any]:
        """
        JSON body of a synthesis request.

        Returns:
            ``{"text", "model_id", "voice_settings": {"stability", "similarity_boost"}}``
        """
        return {
            "text": text,
            "model_id": self.model_id,
            "voice_settings": {
                "stability": self.stability,
                "similarity_boost": self.similarity_boost,
            },
        }

    async def synthesize(self, text: str) -> AudioClip:
        """
        Synthesize ``text`` to MP3.

        Raises:
            SpeechTransportError: If synthesis is disabled or the request fails
        """
        if not self.is_enabled():
            raise SpeechTransportError("ElevenLabs synthesis is not configured")

        loop = asyncio.get_running_loop()
        try:
            audio_bytes = await loop.run_in_executor(None, self._sync_synthesize, text)
        except Exception as e:
            raise SpeechTransportError(f"ElevenLabs TTS request failed: {e}") from e

        logger.debug("Synthesized %d bytes for %d characters", len(audio_bytes), len(text))
        return AudioClip(data=audio_bytes, format="mp3")

    def _sync_synthesize(self, text: str) -> bytes:
        """Synchronous synthesis (run in thread pool)."""
        request = self.build_request(text)

        response = self.client.text_to_speech.convert(
            voice_id=self.voice_id,
            text=request["text"],
            model_id=request["model_id"],
            output_format=ELEVENLABS_OUTPUT_FORMAT,
            voice_settings=VoiceSettings(**request["voice_settings"]),
        )

        audio_buffer = BytesIO()
        for chunk in response:
            if chunk:
                audio_buffer.write(chunk)
        return audio_buffer.getvalue()
