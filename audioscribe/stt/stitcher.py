"""
audioscribe/stt/stitcher.py
============================
Chunk Result Stitcher — audioscribe

Responsibility:
    - Merge per-chunk TranscriptionResults (in chunk order) into one
      transcript whose timestamps are on the original recording's timeline
    - Renumber coarse segment ids across the combined list

Offsets accumulate by chunk INDEX, never by completion order: chunk k is
shifted by the summed reported durations of chunks 0..k-1. A chunk that
reports no duration advances the offset by the planned target length.

This module does NOT:
    - Call the STT service
    - Deduplicate overlapping text (chunks never overlap)
"""

import logging

from audioscribe.stt.models import Segment, TranscriptionResult, Word

logger = logging.getLogger("audioscribe.stt.stitcher")

DEFAULT_FALLBACK_DURATION_SEC: float = 600.0


def stitch_results(
    results: list[TranscriptionResult],
    fallback_duration: float = DEFAULT_FALLBACK_DURATION_SEC,
) -> TranscriptionResult:
    """
    Stitch ordered chunk results into a single TranscriptionResult.

    Args:
        results:           Chunk results, in chunk order.
        fallback_duration: Offset increment for a chunk reporting no duration.

    Returns:
        Combined result; ``duration`` is the final accumulated offset.
    """
    offset = 0.0
    language = ""
    text_parts: list[str] = []
    words: list[Word] = []
    segments: list[Segment] = []

    for index, result in enumerate(results):
        text = result.text.strip()
        if text:
            text_parts.append(text)

        words.extend(word.shifted(offset) for word in result.words)
        for segment in result.segments:
            segments.append(
                Segment(
                    id=len(segments),
                    start=segment.start + offset,
                    end=segment.end + offset,
                    text=segment.text,
                )
            )

        if not language and result.language:
            language = result.language

        if result.duration > 0:
            offset += result.duration
        else:
            logger.warning(
                "Chunk %d reported no duration, advancing offset by %.0fs.",
                index, fallback_duration,
            )
            offset += fallback_duration

    logger.info(
        "Stitched %d chunk(s): %.1fs, %d segment(s), %d word(s).",
        len(results), offset, len(segments), len(words),
    )

    return TranscriptionResult(
        text=" ".join(text_parts).strip(),
        language=language,
        duration=offset,
        segments=tuple(segments),
        words=tuple(words),
    )
