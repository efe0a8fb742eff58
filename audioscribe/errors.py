"""
audioscribe/errors.py
======================
Error Taxonomy — audioscribe

Responsibility:
    - Define every failure the transcription pipeline can surface
    - Give each failure a stable ``kind`` string so the HTTP layer (and any
      other caller) can report the upstream cause without string matching

Fallback rules live in the pipeline, not here:
    - ToolUnavailableError / SilenceDetectionError → fixed-length fallback
      where one exists
    - ProbeError, PlanningError → fail the request
    - RenderError → fallback for silence-aware rendering, fatal otherwise
    - Transcription client errors → abort remaining chunks

This module does NOT:
    - Log anything
    - Retry anything
"""


class TranscriptionPipelineError(Exception):
    """Base class for all pipeline failures."""

    kind: str = "pipeline"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# ---------------------------------------------------------------------------
# Input / audio toolkit
# ---------------------------------------------------------------------------


class AudioInputError(TranscriptionPipelineError):
    """Raised when the input file is missing, unreadable, or rejected."""

    kind = "input"


class ToolUnavailableError(TranscriptionPipelineError):
    """Raised when ffmpeg / ffprobe cannot be found on PATH."""

    kind = "tool_unavailable"


class ProbeError(TranscriptionPipelineError):
    """Raised when the audio duration cannot be determined."""

    kind = "probe"


class SilenceDetectionError(TranscriptionPipelineError):
    """Raised when the silence scan exits abnormally."""

    kind = "silence_detection"


class PlanningError(TranscriptionPipelineError):
    """Raised when segment planning produces no segments."""

    kind = "planning"


class RenderError(TranscriptionPipelineError):
    """Raised when a chunk file cannot be produced."""

    kind = "render"


class DeadlineExceededError(TranscriptionPipelineError):
    """Raised when the caller-supplied time budget has been spent."""

    kind = "deadline"


# ---------------------------------------------------------------------------
# Speech-to-text service
# ---------------------------------------------------------------------------


class AuthError(TranscriptionPipelineError):
    """Raised on HTTP 401 / 403 from the speech-to-text service."""

    kind = "auth"


class RateLimitError(TranscriptionPipelineError):
    """Raised on HTTP 429 from the speech-to-text service."""

    kind = "rate_limit"


class UpstreamError(TranscriptionPipelineError):
    """Raised on any other non-2xx status or an unparseable response."""

    kind = "upstream"

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class TransportError(TranscriptionPipelineError):
    """Raised when the request never got a response (network, timeout)."""

    kind = "transport"
