"""
audioscribe/audio/analysis.py
==============================
Audio Analysis — audioscribe

Responsibility:
    - Probe the total duration of an audio file
    - Run the toolkit's silence scan and turn its diagnostic stream into
      ordered SilenceInterval values for the segment planner

Silence marker pairing:
    Each ``silence_start`` is paired with the next ``silence_end``.
    A ``silence_end`` with no pending start is dropped. So is a trailing
    ``silence_start`` that never closes, or a pair whose end precedes its
    start. Values that do not parse as non-negative numbers are ignored.

This module does NOT:
    - Decide where to cut (see audioscribe.audio.chunker)
    - Fall back to fixed-length chunking (the pipeline does)
"""

import logging
import math
import re
from dataclasses import dataclass

from audioscribe.audio.toolkit import AudioToolkit
from audioscribe.errors import ProbeError

logger = logging.getLogger("audioscribe.audio.analysis")

DEFAULT_NOISE_DB: float = -30.0
DEFAULT_MIN_SILENCE_SEC: float = 0.4

_MARKER_PATTERN = re.compile(r"(silence_start|silence_end)\s*:?\s*(\S+)")


@dataclass(frozen=True)
class SilenceInterval:
    """A [start, end) span of near-silence, in seconds."""

    start: float
    end: float


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def probe_duration(
    toolkit: AudioToolkit,
    path: str,
    timeout: float | None = None,
) -> float:
    """
    Return the duration of *path* in seconds.

    Raises:
        ProbeError:           If the toolkit fails or reports a non-finite
                              or non-positive duration.
        ToolUnavailableError: If the probe binary is missing.
    """
    duration = toolkit.probe_duration(path, timeout=timeout)
    if not math.isfinite(duration) or duration <= 0:
        raise ProbeError(f"failed to read audio duration (got {duration})")
    logger.info("Probed duration: %.1fs", duration)
    return duration


def detect_silence(
    toolkit: AudioToolkit,
    path: str,
    noise_db: float = DEFAULT_NOISE_DB,
    min_duration: float = DEFAULT_MIN_SILENCE_SEC,
    timeout: float | None = None,
) -> list[SilenceInterval]:
    """
    Scan *path* for silence and return the detected intervals in order.

    Raises:
        SilenceDetectionError: If the scan exits abnormally.
        ToolUnavailableError:  If the scan binary is missing.
    """
    output = toolkit.detect_silence(path, noise_db, min_duration, timeout=timeout)
    intervals = parse_silence_output(output)
    logger.info(
        "Silence scan found %d interval(s) (noise=%gdB, d=%.2fs).",
        len(intervals), noise_db, min_duration,
    )
    return intervals


def parse_silence_output(output: str) -> list[SilenceInterval]:
    """Parse ``silence_start`` / ``silence_end`` markers from *output*."""
    intervals: list[SilenceInterval] = []
    pending_start: float | None = None

    for line in output.splitlines():
        for key, raw in _MARKER_PATTERN.findall(line):
            value = _parse_value(raw)
            if value is None:
                continue

            if key == "silence_start":
                pending_start = value
                continue

            if pending_start is None:
                logger.debug("Dropping orphan silence_end at %.3fs.", value)
                continue

            if value < pending_start:
                logger.debug(
                    "Dropping inverted silence interval %.3f-%.3fs.", pending_start, value,
                )
                pending_start = None
                continue

            intervals.append(SilenceInterval(start=pending_start, end=value))
            pending_start = None

    if pending_start is not None:
        logger.debug("Dropping unterminated silence_start at %.3fs.", pending_start)

    return intervals


def _parse_value(raw: str) -> float | None:
    try:
        value = float(raw)
    except ValueError:
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value
