"""
tests/test_stitcher.py
=======================
Chunk Stitching Tests — audioscribe

Tests verify:
    1. Word and segment timestamps are shifted by the summed durations
       of all preceding chunks
    2. A chunk with no reported duration advances the offset by the
       fallback length
    3. Text joining, language selection and segment id renumbering

All tests are OFFLINE.
"""

import os
import sys
import unittest

# Ensure project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from audioscribe.stt.models import Segment, TranscriptionResult, Word
from audioscribe.stt.stitcher import stitch_results

from fakes import chunk_result


class TestOffsets(unittest.TestCase):

    def test_words_shift_by_preceding_durations(self):
        results = [
            chunk_result("One.", duration=581.0, words=[("One.", 1.0, 1.5)]),
            chunk_result("Two.", duration=600.0, words=[("Two.", 2.0, 2.5)]),
            chunk_result("Three.", duration=319.0, words=[("Three.", 0.5, 1.0)]),
        ]
        stitched = stitch_results(results)

        self.assertEqual(
            [(w.text, w.start, w.end) for w in stitched.words],
            [("One.", 1.0, 1.5), ("Two.", 583.0, 583.5), ("Three.", 1181.5, 1182.0)],
        )
        self.assertEqual(stitched.duration, 1500.0)

    def test_segments_shift_and_renumber(self):
        first = TranscriptionResult(
            text="a b", duration=10.0,
            segments=(Segment(0, 0.0, 4.0, "a"), Segment(1, 4.0, 9.5, "b")),
        )
        second = TranscriptionResult(
            text="c", duration=8.0, segments=(Segment(0, 1.0, 7.0, "c"),),
        )
        stitched = stitch_results([first, second])

        self.assertEqual([s.id for s in stitched.segments], [0, 1, 2])
        self.assertEqual(stitched.segments[2].start, 11.0)
        self.assertEqual(stitched.segments[2].end, 17.0)

    def test_zero_duration_chunk_uses_fallback(self):
        results = [
            chunk_result("First.", duration=0.0, words=[("First.", 0.0, 0.5)]),
            chunk_result("Second.", duration=30.0, words=[("Second.", 0.0, 0.5)]),
        ]
        stitched = stitch_results(results, fallback_duration=600.0)

        self.assertEqual(stitched.words[1].start, 600.0)
        self.assertEqual(stitched.duration, 630.0)

    def test_confidence_survives_shift(self):
        result = TranscriptionResult(
            text="hi", duration=5.0, words=(Word("hi", 0.0, 0.2, confidence=0.93),),
        )
        stitched = stitch_results([chunk_result(duration=5.0), result])
        self.assertEqual(stitched.words[-1].confidence, 0.93)
        self.assertEqual(stitched.words[-1].start, 5.0)


class TestTextAndLanguage(unittest.TestCase):

    def test_text_joined_and_blanks_skipped(self):
        results = [
            chunk_result("  Hello there. "),
            chunk_result("   ", words=[]),
            chunk_result("General Kenobi."),
        ]
        self.assertEqual(stitch_results(results).text, "Hello there. General Kenobi.")

    def test_first_non_empty_language_wins(self):
        results = [
            chunk_result(language=""),
            chunk_result(language="english"),
            chunk_result(language="french"),
        ]
        self.assertEqual(stitch_results(results).language, "english")

    def test_empty_input(self):
        stitched = stitch_results([])
        self.assertEqual(stitched.text, "")
        self.assertEqual(stitched.duration, 0.0)
        self.assertEqual(stitched.words, ())


if __name__ == "__main__":
    unittest.main()
