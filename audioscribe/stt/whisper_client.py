"""
audioscribe/stt/whisper_client.py
==================================
OpenAI Whisper STT Client — audioscribe

Responsibility:
    - Transcribe one audio file (whole recording or a single chunk) with
      the OpenAI audio transcription endpoint
    - Request verbose output with word- AND segment-level timestamps
    - Map service failures onto the pipeline error taxonomy:
          401 / 403        → AuthError
          429              → RateLimitError
          other non-2xx    → UpstreamError (status + truncated body)
          network/timeout  → TransportError
    - Parse the verbose response into a TranscriptionResult

The SDK's built-in retries are disabled: retry policy belongs to the
caller, and a retried chunk would otherwise hide rate limiting.

This module does NOT:
    - Chunk audio or stitch results
    - Derive sentences or paragraphs
    - Log or store the API key
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import Any

import httpx
import openai
from openai import OpenAI

from audioscribe.errors import (
    AudioInputError,
    AuthError,
    RateLimitError,
    TransportError,
    UpstreamError,
)
from audioscribe.stt.models import Segment, TranscriptionResult, Word

logger = logging.getLogger("audioscribe.stt.whisper_client")

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

WHISPER_MODEL = "whisper-1"
RESPONSE_FORMAT = "verbose_json"
TIMESTAMP_GRANULARITIES = ["word", "segment"]
DEFAULT_TIMEOUT_SEC: float = 150.0
MAX_ERROR_BODY_BYTES = 8 << 10


# ---------------------------------------------------------------------------
# Capability interface
# ---------------------------------------------------------------------------


class Transcriber(ABC):
    """Anything that can turn one audio file into a TranscriptionResult."""

    @abstractmethod
    def transcribe(self, path: str, timeout: float | None = None) -> TranscriptionResult:
        """Transcribe *path*. *timeout* caps this single request."""


class WhisperTranscriber(Transcriber):
    """Transcriber backed by the OpenAI audio transcription endpoint."""

    def __init__(
        self,
        api_key: str,
        model: str = WHISPER_MODEL,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        client: Any = None,
    ):
        self.model = model
        self.timeout = timeout
        self.client = client or OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )

    def transcribe(self, path: str, timeout: float | None = None) -> TranscriptionResult:
        """
        Transcribe a single file.

        Args:
            path:    Audio file to upload (<= 25 MB).
            timeout: Per-request cap in seconds; defaults to the client timeout.

        Returns:
            TranscriptionResult with chunk-local timestamps.

        Raises:
            AudioInputError, AuthError, RateLimitError, UpstreamError,
            TransportError.
        """
        try:
            size_kb = os.path.getsize(path) / 1024
        except OSError as exc:
            raise AudioInputError(f"failed to read audio: {exc}") from exc

        logger.info(
            "Sending %s (%.1f KB) to %s...", os.path.basename(path), size_kb, self.model,
        )

        try:
            with open(path, "rb") as audio_file:
                response = self.client.audio.transcriptions.create(
                    model=self.model,
                    file=audio_file,
                    response_format=RESPONSE_FORMAT,
                    timestamp_granularities=TIMESTAMP_GRANULARITIES,
                    timeout=timeout if timeout is not None else self.timeout,
                )
        except OSError as exc:
            raise AudioInputError(f"failed to read audio: {exc}") from exc
        except openai.APIStatusError as exc:
            raise _map_status_error(exc) from exc
        except openai.APITimeoutError as exc:
            raise TransportError(f"transcription request timeout: {exc}") from exc
        except openai.APIConnectionError as exc:
            raise TransportError(f"transcription request failed: {exc}") from exc
        except openai.APIError as exc:
            raise UpstreamError(f"failed to parse transcription: {exc}") from exc

        result = parse_transcription(response)
        logger.info(
            "Transcribed %s: %.1fs, %d segment(s), %d word(s), language=%s.",
            os.path.basename(path), result.duration,
            len(result.segments), len(result.words), result.language or "?",
        )
        return result


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


def parse_transcription(response: Any) -> TranscriptionResult:
    """
    Build a TranscriptionResult from a verbose transcription response.

    Accepts the SDK response object or a plain dict with the same shape:
        {text, language, duration, segments: [{id, start, end, text}],
         words: [{word, start, end, confidence?}]}

    Raises:
        UpstreamError: If numeric fields are not numbers.
    """
    try:
        segments = tuple(
            Segment(
                id=int(_field(seg, "id", index)),
                start=float(_field(seg, "start", 0.0)),
                end=float(_field(seg, "end", 0.0)),
                text=_field(seg, "text", "") or "",
            )
            for index, seg in enumerate(_field(response, "segments", None) or [])
        )
        words = tuple(
            Word(
                text=_field(w, "word", "") or "",
                start=float(_field(w, "start", 0.0)),
                end=float(_field(w, "end", 0.0)),
                confidence=_optional_float(_field(w, "confidence", None)),
            )
            for w in (_field(response, "words", None) or [])
        )
        duration = float(_field(response, "duration", 0.0) or 0.0)
    except (TypeError, ValueError) as exc:
        raise UpstreamError(f"failed to parse transcription: {exc}") from exc

    return TranscriptionResult(
        text=_field(response, "text", "") or "",
        language=_field(response, "language", "") or "",
        duration=duration,
        segments=segments,
        words=words,
    )


def _field(obj: Any, name: str, default: Any) -> Any:
    """Read *name* from a dict or an attribute-style object."""
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    return float(value)


def _map_status_error(exc: openai.APIStatusError) -> Exception:
    status = exc.status_code
    body = _truncated_body(exc)

    if status in (401, 403):
        return AuthError(f"openai authentication failed: {body}")
    if status == 429:
        return RateLimitError(f"openai rate limited: {body}")
    return UpstreamError(
        f"transcription failed (status {status}): {body}",
        status_code=status,
        body=body,
    )


def _truncated_body(exc: openai.APIStatusError) -> str:
    response = getattr(exc, "response", None)
    try:
        raw = response.text if response is not None else ""
    except (httpx.ResponseNotRead, httpx.DecodingError):
        raw = ""
    if not raw:
        raw = str(getattr(exc, "message", "") or exc)
    return raw.encode("utf-8")[:MAX_ERROR_BODY_BYTES].decode("utf-8", "ignore").strip()
