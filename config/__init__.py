"""
Session configuration loader.

Reads the fortune teller's session settings (model, endpoint, prompts, intro,
background music, voice) from a JSON file once at startup. ElevenLabs credentials
left blank in the file are taken from the environment (``.env`` supported).
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from constants import (
    BACKGROUND_MUSIC_VOLUME,
    DEFAULT_LLM_ENDPOINT,
    DEFAULT_LLM_MODEL,
    ELEVENLABS_DEFAULT_MODEL_ID,
    ELEVENLABS_DEFAULT_SIMILARITY_BOOST,
    ELEVENLABS_DEFAULT_STABILITY,
    MAX_PARSE_ATTEMPTS,
    PLAYBACK_TICK_SECONDS,
    RETRY_REMINDER,
)
from exceptions import ConfigError

_CONFIG_DIR = Path(__file__).parent
DEFAULT_CONFIG_PATH = _CONFIG_DIR / "session.json"


class SessionConfig(BaseModel):
    """
    Everything the conversation core needs, as plain values.

    Clip paths are resolved relative to the config file by the loader.
    """

    llm_model: str = DEFAULT_LLM_MODEL
    llm_endpoint: str = DEFAULT_LLM_ENDPOINT
    llm_api_key: str = ""

    system_prompt: str = ""
    user_prompt: str = ""
    retry_reminder: str = RETRY_REMINDER
    max_attempts: int = Field(default=MAX_PARSE_ATTEMPTS, ge=1)

    intro_spoken: str = ""
    intro_clip: Optional[str] = None
    intro_question: str = ""
    intro_question_clip: Optional[str] = None
    intro_choices: list[str] = Field(default_factory=list)
    start_delay: float = Field(default=0.0, ge=0.0)
    tick_seconds: float = Field(default=PLAYBACK_TICK_SECONDS, gt=0.0)

    background_music: Optional[str] = None
    background_music_volume: float = BACKGROUND_MUSIC_VOLUME
    background_music_loop: bool = True
    play_background_music_on_start: bool = True

    log_transcript: bool = False

    elevenlabs_api_key: str = ""
    elevenlabs_voice_id: str = ""
    elevenlabs_model_id: str = ELEVENLABS_DEFAULT_MODEL_ID
    elevenlabs_stability: float = ELEVENLABS_DEFAULT_STABILITY
    elevenlabs_similarity_boost: float = ELEVENLABS_DEFAULT_SIMILARITY_BOOST

    def has_intro_question(self) -> bool:
        """An intro question counts only with at least one non-blank choice."""
        if not self.intro_question.strip():
            return False
        return any(choice.strip() for choice in self.intro_choices)

    def has_background_music(self) -> bool:
        return bool(self.background_music and self.background_music.strip())

    def with_environment(self) -> SessionConfig:
        """Copy with blank credentials filled from ELEVENLABS_* variables."""
        return self.model_copy(
            update={
                "elevenlabs_api_key": self.elevenlabs_api_key.strip()
                or os.getenv("ELEVENLABS_API_KEY", ""),
                "elevenlabs_voice_id": self.elevenlabs_voice_id.strip()
                or os.getenv("ELEVENLABS_VOICE_ID", ""),
            }
        )


def _resolve_clip(path: Optional[str], base_dir: Path) -> Optional[str]:
    if not path:
        return None
    candidate = Path(path)
    if not candidate.is_absolute():
        candidate = base_dir / candidate
    return str(candidate)


def load_session_config(path: str | Path | None = None) -> SessionConfig:
    """
    Load the session configuration.

    Args:
        path: JSON file to read. None uses FORTUNE_TELLER_CONFIG or the bundled
              ``config/session.json``; a missing default file yields defaults.

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid
    """
    load_dotenv()

    explicit = path is not None or bool(os.getenv("FORTUNE_TELLER_CONFIG"))
    config_path = Path(path or os.getenv("FORTUNE_TELLER_CONFIG") or DEFAULT_CONFIG_PATH)

    data: dict = {}
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigError(str(config_path), str(e)) from e
        if not isinstance(data, dict):
            raise ConfigError(str(config_path), "top-level value must be an object")
    elif explicit:
        raise ConfigError(str(config_path), "file not found")

    try:
        config = SessionConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(str(config_path), str(e)) from e

    base_dir = config_path.parent
    config = config.model_copy(
        update={
            "intro_clip": _resolve_clip(config.intro_clip, base_dir),
            "intro_question_clip": _resolve_clip(config.intro_question_clip, base_dir),
            "background_music": _resolve_clip(config.background_music, base_dir),
        }
    )
    return config.with_environment()


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "SessionConfig",
    "load_session_config",
]
