"""
Project-wide constants.

Centralizes magic numbers, prompt text and default configuration values.
"""

from __future__ import annotations

from typing import Final

# =============================================================================
# Chat Protocol
# =============================================================================
FORMAT_INSTRUCTIONS: Final[str] = (
    'Respond ONLY with valid JSON. Format: {"spoken":"...","score":<0-100>,"insults":true|false}. '
    '"spoken" must contain only the words you will say aloud (no descriptive actions, no labels). '
    '"score" must be an integer between 0 and 100 assessing the quality of the player\'s sentence '
    "(preferably expressed as a number). "
    '"insults" must be a boolean set to true if the player\'s sentence contains insults. '
    "Do not include any extra text outside the JSON."
)
RETRY_REMINDER: Final[str] = (
    "That response was not valid JSON. Reply again using ONLY the schema "
    '{"spoken":"...","score":<0-100>,"insults":true|false}.'
)
MAX_PARSE_ATTEMPTS: Final[int] = 3

DEFAULT_LLM_MODEL: Final[str] = "llama3"
DEFAULT_LLM_ENDPOINT: Final[str] = "http://localhost:11434/v1/chat/completions"

# =============================================================================
# Reply Defaults
# =============================================================================
DEFAULT_REPLY_SCORE: Final[int] = 50
SCORE_MIN: Final[int] = 0
SCORE_MAX: Final[int] = 100

# =============================================================================
# Player Input Scoring
# =============================================================================
SCORE_BASELINE: Final[int] = 50
LENGTH_LONG_THRESHOLD: Final[int] = 50
LENGTH_LONG_BONUS: Final[int] = 15
LENGTH_MEDIUM_THRESHOLD: Final[int] = 30
LENGTH_MEDIUM_BONUS: Final[int] = 10
LENGTH_SHORT_THRESHOLD: Final[int] = 5
LENGTH_SHORT_PENALTY: Final[int] = 20
MARKER_MANY_THRESHOLD: Final[int] = 3
MARKER_MANY_BONUS: Final[int] = 20
MARKER_SOME_BONUS: Final[int] = 10
INSULT_PENALTY: Final[int] = 30
PUNCTUATION_LIMIT: Final[int] = 3  # More than this many !/? is penalized
PUNCTUATION_PENALTY: Final[int] = 10

# =============================================================================
# Playback & Pacing
# =============================================================================
PLAYBACK_TICK_SECONDS: Final[float] = 0.05
INTRO_SECONDS_PER_CHAR: Final[float] = 0.05
INTRO_MIN_SECONDS: Final[float] = 1.0
INTRO_MAX_SECONDS: Final[float] = 5.0
BACKGROUND_MUSIC_VOLUME: Final[float] = 0.35

# =============================================================================
# ElevenLabs Speech
# =============================================================================
ELEVENLABS_DEFAULT_MODEL_ID: Final[str] = "eleven_turbo_v2_5"
ELEVENLABS_OUTPUT_FORMAT: Final[str] = "mp3_44100_128"
ELEVENLABS_DEFAULT_STABILITY: Final[float] = 0.5
ELEVENLABS_DEFAULT_SIMILARITY_BOOST: Final[float] = 0.75
ALLOWED_STABILITY_VALUES: Final[tuple[float, ...]] = (0.0, 0.5, 1.0)

# =============================================================================
# Display Text
# =============================================================================
PREPARING_TEXT: Final[str] = "The fortune teller prepares to speak..."
THINKING_TEXT: Final[str] = "The fortune teller contemplates..."

# =============================================================================
# Logging Configuration
# =============================================================================
LOG_LEVEL_PRODUCTION: Final[str] = "INFO"
LOG_LEVEL_DEVELOPMENT: Final[str] = "DEBUG"
LOG_FORMAT_JSON: Final[bool] = True  # Set to False for development readable format
