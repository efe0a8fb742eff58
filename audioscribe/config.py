"""
audioscribe/config.py
======================
Runtime Configuration — audioscribe

Responsibility:
    - Read every tunable threshold from the environment (.env supported via
      python-dotenv, loaded by main.py before this module is used)
    - Fall back to documented defaults on missing or malformed values
    - Expose one immutable settings object shared by the API and pipeline

This module does NOT:
    - Validate API keys against the speech-to-text service
    - Hold per-request state
"""

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger("audioscribe.config")

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_TRANSCRIBE_MODEL = "whisper-1"
DEFAULT_REQUEST_TIMEOUT_SEC: float = 30.0
MIN_REQUEST_TIMEOUT_SEC: float = 120.0
REQUEST_TIMEOUT_PADDING_SEC: float = 30.0

DEFAULT_MAX_UPLOAD_BYTES: int = 30 << 20           # 30 MB accepted over HTTP
DEFAULT_MAX_SINGLE_REQUEST_BYTES: int = 25 << 20   # 25 MB per STT request

DEFAULT_SEGMENT_TARGET_SEC: float = 600.0
DEFAULT_SEGMENT_MIN_SEC: float = 30.0
DEFAULT_SILENCE_NOISE_DB: float = -30.0
DEFAULT_SILENCE_MIN_DURATION_SEC: float = 0.4

DEFAULT_SENTENCE_GAP_SEC: float = 0.6
DEFAULT_SENTENCE_MIN_DURATION_SEC: float = 0.4
DEFAULT_PARAGRAPH_GAP_SEC: float = 1.6
DEFAULT_PARAGRAPH_MAX_SENTENCES: int = 4


@dataclass(frozen=True)
class TranscriptionSettings:
    """All knobs for one deployment. Defaults match the service limits."""

    openai_api_key: str = ""
    transcribe_model: str = DEFAULT_TRANSCRIBE_MODEL
    openai_base_url: str | None = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SEC

    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    max_single_request_bytes: int = DEFAULT_MAX_SINGLE_REQUEST_BYTES

    segment_target_seconds: float = DEFAULT_SEGMENT_TARGET_SEC
    segment_min_seconds: float = DEFAULT_SEGMENT_MIN_SEC
    silence_noise_db: float = DEFAULT_SILENCE_NOISE_DB
    silence_min_duration: float = DEFAULT_SILENCE_MIN_DURATION_SEC

    sentence_gap_seconds: float = DEFAULT_SENTENCE_GAP_SEC
    sentence_min_duration: float = DEFAULT_SENTENCE_MIN_DURATION_SEC
    paragraph_gap_seconds: float = DEFAULT_PARAGRAPH_GAP_SEC
    paragraph_max_sentences: int = DEFAULT_PARAGRAPH_MAX_SENTENCES

    ffmpeg_binary: str = "ffmpeg"
    ffprobe_binary: str = "ffprobe"

    @property
    def http_timeout(self) -> float:
        """
        Timeout handed to the HTTP client for a single transcription call.

        Long chunks take a while to transcribe, so the configured AI
        timeout is floored at two minutes and padded for upload time.
        """
        return max(self.request_timeout, MIN_REQUEST_TIMEOUT_SEC) + REQUEST_TIMEOUT_PADDING_SEC

    @classmethod
    def from_env(cls) -> "TranscriptionSettings":
        """Build settings from environment variables."""
        return cls(
            openai_api_key=os.environ.get("OPENAI_API_KEY", "").strip(),
            transcribe_model=os.environ.get(
                "OPENAI_TRANSCRIBE_MODEL", DEFAULT_TRANSCRIBE_MODEL
            ).strip() or DEFAULT_TRANSCRIBE_MODEL,
            openai_base_url=os.environ.get("OPENAI_BASE_URL", "").strip() or None,
            request_timeout=_env_float("AI_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT_SEC),
            max_upload_bytes=_env_int("MAX_AUDIO_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
            max_single_request_bytes=_env_int(
                "MAX_SINGLE_REQUEST_BYTES", DEFAULT_MAX_SINGLE_REQUEST_BYTES
            ),
            segment_target_seconds=_env_float("SEGMENT_TARGET_SECONDS", DEFAULT_SEGMENT_TARGET_SEC),
            segment_min_seconds=_env_float("SEGMENT_MIN_SECONDS", DEFAULT_SEGMENT_MIN_SEC),
            silence_noise_db=_env_float(
                "SILENCE_NOISE_DB", DEFAULT_SILENCE_NOISE_DB, positive=False
            ),
            silence_min_duration=_env_float(
                "SILENCE_MIN_DURATION", DEFAULT_SILENCE_MIN_DURATION_SEC
            ),
            sentence_gap_seconds=_env_float("SENTENCE_GAP_SECONDS", DEFAULT_SENTENCE_GAP_SEC),
            sentence_min_duration=_env_float(
                "SENTENCE_MIN_DURATION", DEFAULT_SENTENCE_MIN_DURATION_SEC
            ),
            paragraph_gap_seconds=_env_float("PARAGRAPH_GAP_SECONDS", DEFAULT_PARAGRAPH_GAP_SEC),
            paragraph_max_sentences=_env_int(
                "PARAGRAPH_MAX_SENTENCES", DEFAULT_PARAGRAPH_MAX_SENTENCES
            ),
            ffmpeg_binary=os.environ.get("FFMPEG_BINARY", "").strip() or "ffmpeg",
            ffprobe_binary=os.environ.get("FFPROBE_BINARY", "").strip() or "ffprobe",
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _env_float(name: str, default: float, positive: bool = True) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid %s=%r; using default %s.", name, raw, default)
        return default
    if positive and value <= 0:
        logger.warning("%s must be positive (got %s); using default %s.", name, value, default)
        return default
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r; using default %d.", name, raw, default)
        return default
    if value <= 0:
        logger.warning("%s must be positive (got %d); using default %d.", name, value, default)
        return default
    return value
