"""
Tests for the player input heuristics.
"""

import unittest

from content_scorer import ContentScorer, detect_insults, score_text


class TestDetectInsults(unittest.TestCase):
    def setUp(self):
        self.scorer = ContentScorer()

    def test_detects_insult_any_case(self):
        self.assertTrue(self.scorer.detect_insults("Tu es CON"))
        self.assertTrue(self.scorer.detect_insults("What the FUCK"))
        self.assertTrue(self.scorer.detect_insults("Espèce d'Idiot"))

    def test_matches_substrings(self):
        # "con" is matched inside longer words too
        self.assertTrue(self.scorer.detect_insults("une conversation"))
        self.assertTrue(self.scorer.detect_insults("enculé"))

    def test_polite_text_has_no_insults(self):
        self.assertFalse(self.scorer.detect_insults("Bonjour madame, merci beaucoup"))

    def test_blank_text_has_no_insults(self):
        self.assertFalse(self.scorer.detect_insults(""))
        self.assertFalse(self.scorer.detect_insults("   "))

    def test_module_level_helper(self):
        self.assertTrue(detect_insults("merde alors"))


class TestScore(unittest.TestCase):
    def setUp(self):
        self.scorer = ContentScorer()

    def test_blank_scores_zero(self):
        self.assertEqual(self.scorer.score(""), 0)
        self.assertEqual(self.scorer.score("  \n "), 0)

    def test_insult_with_marker_ends_below_baseline(self):
        # baseline 50, +10 for "tu ", -30 for "con"
        self.assertEqual(self.scorer.score("tu es con"), 30)

    def test_very_short_input_penalized(self):
        self.assertEqual(self.scorer.score("ok"), 30)

    def test_long_french_sentence_rewarded(self):
        text = "Bonjour madame, je voudrais savoir pourquoi et comment mon avenir sera"
        self.assertEqual(self.scorer.score(text), 85)

    def test_medium_length_bonus(self):
        text = "Please read the cards for me now"
        self.assertGreater(len(text), 30)
        self.assertEqual(self.scorer.score(text), 60)

    def test_excess_punctuation_penalized(self):
        # +10 for "quoi", -10 for five !/? characters
        self.assertEqual(self.scorer.score("Quoi?!?! Vraiment?"), 50)

    def test_three_punctuation_marks_not_penalized(self):
        self.assertEqual(self.scorer.score("Hello?!?"), 50)

    def test_score_always_in_range(self):
        samples = ["fdp", "con!!!!", "a", "x" * 500, "je tu il elle nous vous ils elles et mais donc"]
        for text in samples:
            with self.subTest(text=text):
                self.assertGreaterEqual(self.scorer.score(text), 0)
                self.assertLessEqual(self.scorer.score(text), 100)

    def test_count_markers_counts_distinct(self):
        self.assertEqual(self.scorer.count_markers("je je je"), 1)
        self.assertEqual(self.scorer.count_markers("Je pense et tu sais"), 3)

    def test_module_level_helper(self):
        self.assertEqual(score_text("tu es con"), 30)


if __name__ == "__main__":
    unittest.main()
