"""
Tests for the ElevenLabs speech client.

The SDK client is replaced by a Mock, so no request leaves the machine.
"""

from unittest.mock import Mock

import pytest

from exceptions import SpeechTransportError
from tts_elevenlabs import ElevenLabsSpeechClient, clamp_unit, snap_stability


class TestSnapStability:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (0.0, 0.0),
            (0.2, 0.0),
            (0.25, 0.0),
            (0.3, 0.5),
            (0.5, 0.5),
            (0.74, 0.5),
            (0.8, 1.0),
            (1.7, 1.0),
            (-2.0, 0.0),
        ],
    )
    def test_snaps_to_allowed_values(self, value, expected):
        assert snap_stability(value) == expected

    def test_clamp_unit(self):
        assert clamp_unit(-0.1) == 0.0
        assert clamp_unit(1.4) == 1.0
        assert clamp_unit(0.75) == 0.75


def _sdk(chunks=(b"ID3", b"", b"audio")):
    sdk = Mock()
    sdk.text_to_speech.convert.return_value = iter(chunks)
    return sdk


class TestElevenLabsSpeechClient:
    def test_disabled_without_credentials(self):
        assert not ElevenLabsSpeechClient(api_key="", voice_id="voice").is_enabled()
        assert not ElevenLabsSpeechClient(api_key="key", voice_id="  ").is_enabled()

    def test_build_request(self):
        client = ElevenLabsSpeechClient(
            api_key="key", voice_id="voice", model_id="eleven_turbo_v2_5", stability=0.3, similarity_boost=2.0, client=_sdk()
        )

        assert client.build_request("Bonsoir") == {
            "text": "Bonsoir",
            "model_id": "eleven_turbo_v2_5",
            "voice_settings": {"stability": 0.5, "similarity_boost": 1.0},
        }

    async def test_synthesize_joins_chunks(self):
        sdk = _sdk()
        client = ElevenLabsSpeechClient(api_key="key", voice_id="voice", client=sdk)

        clip = await client.synthesize("Les cartes parlent.")

        assert clip.data == b"ID3audio"
        assert clip.format == "mp3"
        kwargs = sdk.text_to_speech.convert.call_args.kwargs
        assert kwargs["voice_id"] == "voice"
        assert kwargs["text"] == "Les cartes parlent."
        assert kwargs["output_format"] == "mp3_44100_128"
        assert kwargs["voice_settings"].stability == 0.5

    async def test_sdk_error_becomes_transport_error(self):
        sdk = Mock()
        sdk.text_to_speech.convert.side_effect = RuntimeError("401 Unauthorized")
        client = ElevenLabsSpeechClient(api_key="key", voice_id="voice", client=sdk)

        with pytest.raises(SpeechTransportError, match="401"):
            await client.synthesize("Bonsoir")

    async def test_synthesize_when_disabled_raises(self):
        client = ElevenLabsSpeechClient(api_key=None, voice_id=None)

        with pytest.raises(SpeechTransportError):
            await client.synthesize("Bonsoir")
