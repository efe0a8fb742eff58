# audioscribe/__init__.py
# ========================
# audioscribe: long-recording transcription
#
# Pipeline:
#   1. Single request for files under the 25 MB ceiling
#   2. Otherwise: probe → silence scan → plan → render chunks
#   3. Transcribe chunks in order (OpenAI Whisper, verbose JSON)
#   4. Stitch chunk results onto the original timeline
#   5. Derive sentences and paragraphs from word timestamps
#
# Public API:
#   transcribe_file(path, api_key) → TranscriptResponse

from audioscribe.pipeline import transcribe_file  # noqa: F401
from audioscribe.stt.models import TranscriptResponse  # noqa: F401

__all__ = [
    "transcribe_file",
    "TranscriptResponse",
]
