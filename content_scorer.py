"""
Player Input Scoring

Heuristic quality score and insult detection for free text typed by the
player. The result is only an annotation passed along to the model; nothing
here blocks or rewrites input.
"""

from constants import (
    INSULT_PENALTY,
    LENGTH_LONG_BONUS,
    LENGTH_LONG_THRESHOLD,
    LENGTH_MEDIUM_BONUS,
    LENGTH_MEDIUM_THRESHOLD,
    LENGTH_SHORT_PENALTY,
    LENGTH_SHORT_THRESHOLD,
    MARKER_MANY_BONUS,
    MARKER_MANY_THRESHOLD,
    MARKER_SOME_BONUS,
    PUNCTUATION_LIMIT,
    PUNCTUATION_PENALTY,
    SCORE_BASELINE,
    SCORE_MAX,
    SCORE_MIN,
)


class ContentScorer:
    """Scores player sentences and flags insults with static word lists."""

    # Matched as substrings, so "con" also hits "connard" and "conversation"
    INSULT_WORDS = (
        "merde",
        "connard",
        "putain",
        "salope",
        "con",
        "pute",
        "encul",
        "fdp",
        "shit",
        "fuck",
        "idiot",
        "stupide",
    )

    # The game targets French players; trailing spaces keep short pronouns
    # from matching inside longer words
    LANGUAGE_MARKERS = (
        "je ",
        "tu ",
        "il ",
        "elle ",
        "nous ",
        "vous ",
        "ils ",
        "elles ",
        "et ",
        "mais ",
        "donc ",
        "parce que ",
        "pourquoi",
        "comment",
        "quoi",
        "qui",
    )

    PUNCTUATION = ("!", "?")

    def detect_insults(self, text: str) -> bool:
        """
        Case-insensitive substring match against the insult list.

        Example:
            >>> ContentScorer().detect_insults("Tu es CON")
            True
        """
        if not text or not text.strip():
            return False

        lower = text.lower()
        return any(word in lower for word in self.INSULT_WORDS)

    def count_markers(self, text: str) -> int:
        """Number of distinct language markers present in ``text``."""
        lower = text.lower()
        return sum(1 for marker in self.LANGUAGE_MARKERS if marker in lower)

    def score(self, text: str) -> int:
        """
        Score a player sentence from 0 to 100.

        Starts at 50, rewards length and French markers, and penalizes
        insults and excessive !/? punctuation. Blank text scores 0.
        """
        if not text or not text.strip():
            return 0

        score = SCORE_BASELINE

        length = len(text)
        if length > LENGTH_LONG_THRESHOLD:
            score += LENGTH_LONG_BONUS
        elif length > LENGTH_MEDIUM_THRESHOLD:
            score += LENGTH_MEDIUM_BONUS
        elif length < LENGTH_SHORT_THRESHOLD:
            score -= LENGTH_SHORT_PENALTY

        markers = self.count_markers(text)
        if markers >= MARKER_MANY_THRESHOLD:
            score += MARKER_MANY_BONUS
        elif markers >= 1:
            score += MARKER_SOME_BONUS

        if self.detect_insults(text):
            score -= INSULT_PENALTY

        punctuation = sum(1 for char in text if char in self.PUNCTUATION)
        if punctuation > PUNCTUATION_LIMIT:
            score -= PUNCTUATION_PENALTY

        return max(SCORE_MIN, min(SCORE_MAX, score))


_default_scorer = ContentScorer()


def score_text(text: str) -> int:
    """Score ``text`` with the shared scorer."""
    return _default_scorer.score(text)


def detect_insults(text: str) -> bool:
    """Insult check with the shared scorer."""
    return _default_scorer.detect_insults(text)
