"""
audioscribe/pipeline.py
========================
Transcription Pipeline Orchestrator — audioscribe

Responsibility:
    1. Transcribe small files in a single request
    2. For files above the single-request ceiling:
           probe duration → detect silence → plan segments → render chunks
           → transcribe chunks IN ORDER → stitch
       falling back to fixed-length chunking when silence detection or
       silence-aware rendering fails
    3. Derive sentences and paragraphs from the (stitched) transcript
    4. Remove every chunk file on every exit path
    5. Return the combined transcript plus advisory warnings

Failure handling:
    - ProbeError / PlanningError fail the request immediately
    - SilenceDetectionError, and ToolUnavailableError from the probe or
      silence scan, trigger the fixed-length fallback
    - RenderError from silence-aware rendering triggers the toolkit's own
      fixed-length segmenter; a failure there fails the request
    - Any transcription error aborts the remaining chunks; no partial
      transcript is ever returned
    - Nothing is retried here

This module does NOT:
    - Parse HTTP requests or validate upload extensions (see api.upload)
    - Perform speech recognition itself
    - Persist transcripts
"""

import logging
import os

from audioscribe.audio.analysis import detect_silence, probe_duration
from audioscribe.audio.chunker import (
    cleanup_chunks,
    plan_fixed_segments,
    plan_segments,
    render_fixed,
    render_segments,
)
from audioscribe.audio.toolkit import AudioToolkit, FfmpegToolkit
from audioscribe.config import TranscriptionSettings
from audioscribe.deadline import Deadline
from audioscribe.errors import (
    AudioInputError,
    AuthError,
    PlanningError,
    RenderError,
    SilenceDetectionError,
    ToolUnavailableError,
)
from audioscribe.stt.models import TranscriptionResult, TranscriptResponse
from audioscribe.stt.stitcher import stitch_results
from audioscribe.stt.transcript_structurer import build_paragraphs, build_sentences
from audioscribe.stt.whisper_client import Transcriber, WhisperTranscriber

logger = logging.getLogger("audioscribe.pipeline")

FALLBACK_WARNING = "Falling back to fixed-length chunking."


# =====================================================================
# Public API
# =====================================================================


def transcribe_file(
    path: str,
    api_key: str | None = None,
    settings: TranscriptionSettings | None = None,
    toolkit: AudioToolkit | None = None,
    transcriber: Transcriber | None = None,
    timeout: float | None = None,
) -> TranscriptResponse:
    """
    Transcribe an audio file of any size.

    Args:
        path:        Readable audio file.
        api_key:     Speech-to-text credential; falls back to the
                     configured key. Ignored when ``transcriber`` is given.
        settings:    Thresholds; read from the environment when omitted.
        toolkit:     Audio toolkit; ffmpeg-backed when omitted.
        transcriber: STT client; Whisper-backed when omitted.
        timeout:     Overall time budget for this call, in seconds.

    Returns:
        TranscriptResponse with text, segments, words, sentences,
        paragraphs and any advisory warnings.

    Raises:
        TranscriptionPipelineError subclass describing the cause.
    """
    settings = settings or TranscriptionSettings.from_env()
    deadline = Deadline(timeout)

    try:
        size = os.path.getsize(path)
    except OSError as exc:
        raise AudioInputError(f"failed to read audio file: {exc}") from exc

    if transcriber is None:
        transcriber = _default_transcriber(api_key, settings)

    if size <= settings.max_single_request_bytes:
        logger.info(
            "Audio is %s; single transcription request.", human_size(size),
        )
        deadline.check("transcription")
        result = transcriber.transcribe(path, timeout=deadline.budget(settings.http_timeout))
        return build_response(result, settings)

    warnings = [
        f"Audio exceeds {human_size(settings.max_single_request_bytes)}; "
        "server-side chunking enabled."
    ]
    logger.info(
        "Audio is %s (limit %s); server-side chunking enabled.",
        human_size(size), human_size(settings.max_single_request_bytes),
    )

    toolkit = toolkit or FfmpegToolkit(settings.ffmpeg_binary, settings.ffprobe_binary)
    chunk_paths: list[str] = []
    try:
        chunk_paths = _render_chunks(path, settings, toolkit, deadline, warnings)
        results = _transcribe_chunks(chunk_paths, transcriber, settings, deadline)
    finally:
        cleanup_chunks(chunk_paths)

    stitched = stitch_results(results, fallback_duration=settings.segment_target_seconds)
    return build_response(stitched, settings, warnings)


def build_response(
    result: TranscriptionResult,
    settings: TranscriptionSettings | None = None,
    warnings: list[str] | None = None,
) -> TranscriptResponse:
    """Attach sentence and paragraph structure to a transcription result."""
    settings = settings or TranscriptionSettings()
    sentences = build_sentences(
        result.words,
        result.segments,
        gap=settings.sentence_gap_seconds,
        min_duration=settings.sentence_min_duration,
    )
    paragraphs = build_paragraphs(
        sentences,
        gap=settings.paragraph_gap_seconds,
        max_sentences=settings.paragraph_max_sentences,
    )
    return TranscriptResponse(
        text=result.text,
        language=result.language,
        duration=result.duration,
        segments=result.segments,
        words=result.words,
        sentences=tuple(sentences),
        paragraphs=tuple(paragraphs),
        warnings=tuple(warnings or ()),
    )


def human_size(num_bytes: int) -> str:
    """Render a byte count the way limits are quoted to users (25MB, 512KB)."""
    if num_bytes >= 1 << 20:
        return f"{num_bytes >> 20}MB"
    if num_bytes >= 1 << 10:
        return f"{num_bytes >> 10}KB"
    return f"{num_bytes} bytes"


# =====================================================================
# Chunking strategies
# =====================================================================


def _render_chunks(
    path: str,
    settings: TranscriptionSettings,
    toolkit: AudioToolkit,
    deadline: Deadline,
    warnings: list[str],
) -> list[str]:
    """Silence-aware chunking, with the fixed-length fallback."""
    duration: float | None = None
    try:
        deadline.check("duration probe")
        duration = probe_duration(toolkit, path, timeout=deadline.remaining())
        deadline.check("silence detection")
        silences = detect_silence(
            toolkit,
            path,
            noise_db=settings.silence_noise_db,
            min_duration=settings.silence_min_duration,
            timeout=deadline.remaining(),
        )
    except (ToolUnavailableError, SilenceDetectionError) as exc:
        logger.warning("Silence-aware chunking unavailable: %s", exc)
        warnings.append(FALLBACK_WARNING)
        return _render_fixed_fallback(path, duration, settings, toolkit, deadline)

    segments = plan_segments(
        duration,
        silences,
        target=settings.segment_target_seconds,
        minimum=settings.segment_min_seconds,
    )
    if not segments:
        raise PlanningError("failed to build chunk segments")

    try:
        return render_segments(toolkit, path, segments, deadline)
    except (RenderError, ToolUnavailableError) as exc:
        logger.warning("Silence-aware rendering failed: %s", exc)
        warnings.append(FALLBACK_WARNING)
        return _render_fixed_fallback(
            path, None, settings, toolkit, deadline,
        )


def _render_fixed_fallback(
    path: str,
    duration: float | None,
    settings: TranscriptionSettings,
    toolkit: AudioToolkit,
    deadline: Deadline,
) -> list[str]:
    """
    Fixed-length chunking.

    With a known duration the windows are planned here and rendered one by
    one; otherwise the toolkit's own segmenter does the split.
    """
    target = settings.segment_target_seconds
    if duration is not None:
        segments = plan_fixed_segments(duration, target=target)
        logger.info("Fixed-length fallback: %d window(s) of %.0fs.", len(segments), target)
        return render_segments(toolkit, path, segments, deadline)

    logger.info("Fixed-length fallback via toolkit segmenter (%.0fs windows).", target)
    return render_fixed(toolkit, path, target, deadline)


def _transcribe_chunks(
    chunk_paths: list[str],
    transcriber: Transcriber,
    settings: TranscriptionSettings,
    deadline: Deadline,
) -> list[TranscriptionResult]:
    """Transcribe chunks one at a time, in chunk order."""
    results: list[TranscriptionResult] = []
    for index, chunk_path in enumerate(chunk_paths, start=1):
        deadline.check(f"transcribing chunk {index}/{len(chunk_paths)}")
        logger.info("Transcribing chunk %d/%d.", index, len(chunk_paths))
        results.append(
            transcriber.transcribe(chunk_path, timeout=deadline.budget(settings.http_timeout))
        )
    return results


def _default_transcriber(
    api_key: str | None,
    settings: TranscriptionSettings,
) -> Transcriber:
    key = (api_key or "").strip() or settings.openai_api_key
    if not key:
        raise AuthError("OpenAI API key not configured")
    return WhisperTranscriber(
        api_key=key,
        model=settings.transcribe_model,
        base_url=settings.openai_base_url,
        timeout=settings.http_timeout,
    )
