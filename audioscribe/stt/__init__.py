# audioscribe/stt/__init__.py
# ============================
# Speech-to-Text Layer — audioscribe
#
# Pipeline pieces:
#   1. Transcribe one file via OpenAI Whisper (word + segment timestamps)
#   2. Stitch per-chunk results onto the original timeline
#   3. Split the transcript into sentences and paragraphs
#
# Public API:
#   WhisperTranscriber(api_key).transcribe(path) → TranscriptionResult
#   stitch_results(results) → TranscriptionResult
#   build_sentences(words, segments) / build_paragraphs(sentences)

from audioscribe.stt.models import (             # noqa: F401
    Segment,
    TranscriptionResult,
    TranscriptResponse,
    TranscriptSpan,
    Word,
)
from audioscribe.stt.stitcher import stitch_results  # noqa: F401
from audioscribe.stt.transcript_structurer import (  # noqa: F401
    build_paragraphs,
    build_sentences,
)
from audioscribe.stt.whisper_client import Transcriber, WhisperTranscriber  # noqa: F401

__all__ = [
    "Segment",
    "TranscriptionResult",
    "TranscriptResponse",
    "TranscriptSpan",
    "Word",
    "stitch_results",
    "build_paragraphs",
    "build_sentences",
    "Transcriber",
    "WhisperTranscriber",
]
