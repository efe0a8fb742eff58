"""
audioscribe/stt/transcript_structurer.py
=========================================
Transcript Structurer — audioscribe

Responsibility:
    - Derive sentence spans from word-level timestamps, using terminal
      punctuation and pauses rather than the service's own segments
    - Absorb sentences that are too short to stand alone into their
      predecessor
    - Group sentences into paragraphs by pause length and sentence count
    - Fall back to one sentence per coarse segment when no usable word
      timestamps exist

Output contract:
    Sentences are numbered S1..Sn and paragraphs P1..Pn, sequentially,
    after all merging. Text is joined with single spaces.

This module does NOT:
    - Modify word text beyond trimming whitespace
    - Call any external service
"""

import logging

from audioscribe.stt.models import Segment, TranscriptSpan, Word

logger = logging.getLogger("audioscribe.stt.transcript_structurer")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

# A pause at least this long (seconds) between two words ends a sentence.
SENTENCE_GAP_SEC: float = 0.6

# Sentences shorter than this (seconds) are merged into the previous one.
MIN_SENTENCE_DURATION_SEC: float = 0.4

# A pause at least this long (seconds) between two sentences ends a paragraph.
PARAGRAPH_GAP_SEC: float = 1.6

MAX_SENTENCES_PER_PARAGRAPH: int = 4

SENTENCE_TERMINALS = (".", "!", "?")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build_sentences(
    words: tuple[Word, ...] | list[Word],
    segments: tuple[Segment, ...] | list[Segment] = (),
    gap: float = SENTENCE_GAP_SEC,
    min_duration: float = MIN_SENTENCE_DURATION_SEC,
) -> list[TranscriptSpan]:
    """
    Split a transcript into sentence spans.

    Steps:
        1. Drop words with blank text or end <= start; sort by start
        2. Close a sentence after a word ending in . ! or ?, or when the
           pause before the next word is >= ``gap``
        3. Merge sentences shorter than ``min_duration`` into the previous
           sentence (the first sentence is never merged backward)
        4. Renumber S1..Sn

    When no usable words remain, each non-empty coarse segment becomes
    one sentence.
    """
    cleaned = _filter_and_sort_words(words)
    if not cleaned:
        sentences = _segments_to_sentences(segments)
        logger.info(
            "No usable word timestamps; %d sentence(s) from coarse segments.",
            len(sentences),
        )
        return sentences

    raw: list[TranscriptSpan] = []
    buffer: list[str] = []
    start = end = 0.0

    for i, word in enumerate(cleaned):
        text = word.text.strip()
        if not buffer:
            start = word.start
        buffer.append(text)
        end = word.end

        next_gap = cleaned[i + 1].start - word.end if i + 1 < len(cleaned) else 0.0
        if text.endswith(SENTENCE_TERMINALS) or next_gap >= gap:
            raw.append(_span("S", len(raw) + 1, start, end, " ".join(buffer), "sentence"))
            buffer = []

    if buffer:
        raw.append(_span("S", len(raw) + 1, start, end, " ".join(buffer), "sentence"))

    sentences = _merge_short_sentences(raw, min_duration)
    logger.info(
        "Sentence split: %d word(s) → %d sentence(s) (%d merged as too short).",
        len(cleaned), len(sentences), len(raw) - len(sentences),
    )
    return sentences


def build_paragraphs(
    sentences: list[TranscriptSpan],
    gap: float = PARAGRAPH_GAP_SEC,
    max_sentences: int = MAX_SENTENCES_PER_PARAGRAPH,
) -> list[TranscriptSpan]:
    """
    Group consecutive sentences into paragraphs.

    A paragraph closes when the pause before the next sentence is >= ``gap``,
    when it holds ``max_sentences`` sentences, or at the last sentence.
    """
    paragraphs: list[TranscriptSpan] = []
    texts: list[str] = []
    start = end = 0.0

    for i, sentence in enumerate(sentences):
        if not texts:
            start = sentence.start
        texts.append(sentence.text)
        end = sentence.end

        is_last = i == len(sentences) - 1
        next_gap = 0.0 if is_last else sentences[i + 1].start - sentence.end

        if next_gap >= gap or len(texts) >= max_sentences or is_last:
            paragraphs.append(
                _span("P", len(paragraphs) + 1, start, end, " ".join(texts), "paragraph")
            )
            texts = []

    return paragraphs


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _filter_and_sort_words(words) -> list[Word]:
    kept = [w for w in words if w.text.strip() and w.end > w.start]
    dropped = len(words) - len(kept)
    if dropped:
        logger.debug("Dropped %d blank or zero-length word(s).", dropped)
    return sorted(kept, key=lambda w: w.start)


def _segments_to_sentences(segments) -> list[TranscriptSpan]:
    sentences: list[TranscriptSpan] = []
    for segment in segments:
        text = segment.text.strip()
        if not text:
            continue
        sentences.append(
            _span("S", len(sentences) + 1, segment.start, segment.end, text, "sentence")
        )
    return sentences


def _merge_short_sentences(
    sentences: list[TranscriptSpan],
    min_duration: float,
) -> list[TranscriptSpan]:
    """
    Fold every sentence shorter than ``min_duration`` into its predecessor.

    Merging extends the predecessor's end and appends the text; the
    predecessor keeps its start. Ids are reassigned afterwards.
    """
    merged: list[TranscriptSpan] = []

    for sentence in sentences:
        if merged and (sentence.end - sentence.start) < min_duration:
            last = merged[-1]
            merged[-1] = _span(
                "S", len(merged), last.start, sentence.end,
                f"{last.text} {sentence.text}".strip(), "sentence",
            )
            continue
        merged.append(sentence)

    return [
        _span("S", i, s.start, s.end, s.text, "sentence")
        for i, s in enumerate(merged, start=1)
    ]


def _span(prefix: str, number: int, start: float, end: float, text: str, kind: str) -> TranscriptSpan:
    return TranscriptSpan(id=f"{prefix}{number}", start=start, end=end, text=text, type=kind)
