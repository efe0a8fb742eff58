"""
audioscribe/audio/chunker.py
=============================
Audio Chunker — audioscribe (silence-aware)

Responsibility:
    - Plan chunk windows for a recording too large for one STT request,
      preferring to cut at the end of a detected silence
    - Plan fixed-length windows when silence information is unavailable
    - Render planned windows to standalone mono 16 kHz chunk files in a
      private temp directory
    - Remove chunk files and their temp directories afterwards

Planning rules:
    - Target window length 600 s, minimum 30 s before a silence may be
      used as a cut point
    - Windows are ordered, contiguous, non-overlapping and cover the
      whole recording exactly
    - Chunks MUST be transcribed in order by the caller; offsets are
      accumulated by chunk index

This module does NOT:
    - Perform STT or merge transcripts
    - Run the silence scan (see audioscribe.audio.analysis)
    - Retry failed renders
"""

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from typing import Iterable

from audioscribe.audio.analysis import SilenceInterval
from audioscribe.audio.toolkit import CHUNK_NAME_PATTERN, AudioToolkit
from audioscribe.deadline import Deadline

logger = logging.getLogger("audioscribe.audio.chunker")

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_SEGMENT_TARGET_SEC: float = 600.0   # target chunk duration (seconds)
DEFAULT_SEGMENT_MIN_SEC: float = 30.0       # no silence cut before this

CHUNK_DIR_PREFIX = "audio-chunks-"


@dataclass(frozen=True)
class PlannedSegment:
    """A [start, end) window of the original recording, in seconds."""

    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------


def plan_segments(
    duration: float,
    silences: list[SilenceInterval],
    target: float = DEFAULT_SEGMENT_TARGET_SEC,
    minimum: float = DEFAULT_SEGMENT_MIN_SEC,
) -> list[PlannedSegment]:
    """
    Greedily plan chunk windows, snapping each cut to a silence end.

    For every window starting at S the ideal end is min(S + target,
    duration). Among the silences whose end lies in (S + minimum,
    ideal end], the one ending latest becomes the cut; with none
    qualifying the window is cut at the ideal end.

    Args:
        duration: Total recording length in seconds.
        silences: Detected silence intervals (any order).
        target:   Target window length in seconds.
        minimum:  Minimum window length before a silence may end it.

    Returns:
        Ordered windows covering [0, duration). Empty if duration <= 0.
    """
    if duration <= 0:
        return []
    if target <= 0:
        raise ValueError(f"target segment length must be positive, got {target}")

    segments: list[PlannedSegment] = []
    start = 0.0

    while start < duration:
        ideal_end = min(start + target, duration)

        cut = ideal_end
        best: float | None = None
        for silence in silences:
            if silence.end <= start + minimum or silence.end > ideal_end:
                continue
            if best is None or silence.end > best:
                best = silence.end
        if best is not None and best > start:
            cut = best

        segments.append(PlannedSegment(start=start, end=cut))
        start = cut

    snapped = sum(1 for s in segments[:-1] if s.duration < target)
    logger.info(
        "Planned %d segment(s) for %.1fs (target=%.0fs, min=%.0fs, %d snapped to silence).",
        len(segments), duration, target, minimum, snapped,
    )
    return segments


def plan_fixed_segments(
    duration: float,
    target: float = DEFAULT_SEGMENT_TARGET_SEC,
) -> list[PlannedSegment]:
    """Plan back-to-back windows of *target* seconds; the last is truncated."""
    return plan_segments(duration, [], target=target, minimum=0.0)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def render_segments(
    toolkit: AudioToolkit,
    path: str,
    segments: list[PlannedSegment],
    deadline: Deadline | None = None,
) -> list[str]:
    """
    Render every planned window of *path* into its own chunk file.

    All chunks go into one fresh temp directory. If any window fails the
    directory and every chunk already written are removed before the
    error propagates, so callers never see a partial chunk set.

    Returns:
        Chunk file paths, in window order.

    Raises:
        RenderError, ToolUnavailableError, DeadlineExceededError.
    """
    deadline = deadline or Deadline()
    out_dir = tempfile.mkdtemp(prefix=CHUNK_DIR_PREFIX)
    chunk_paths: list[str] = []

    try:
        for index, segment in enumerate(segments, start=1):
            deadline.check(f"rendering chunk {index}/{len(segments)}")
            out_path = os.path.join(out_dir, CHUNK_NAME_PATTERN % index)
            toolkit.render_segment(
                path, segment.start, segment.end, out_path,
                timeout=deadline.remaining(),
            )
            chunk_paths.append(out_path)
            logger.debug(
                "Rendered chunk %d: %.3f-%.3fs -> %s",
                index, segment.start, segment.end, out_path,
            )
    except BaseException:
        shutil.rmtree(out_dir, ignore_errors=True)
        raise

    logger.info("Rendered %d chunk(s) into %s.", len(chunk_paths), out_dir)
    return chunk_paths


def render_fixed(
    toolkit: AudioToolkit,
    path: str,
    segment_seconds: float = DEFAULT_SEGMENT_TARGET_SEC,
    deadline: Deadline | None = None,
) -> list[str]:
    """
    Let the toolkit split *path* into fixed-length chunks in one pass.

    Used when neither the duration nor the per-window renderer can be
    relied on. Same cleanup guarantee as ``render_segments``.
    """
    deadline = deadline or Deadline()
    deadline.check("fixed-length chunking")
    out_dir = tempfile.mkdtemp(prefix=CHUNK_DIR_PREFIX)

    try:
        chunk_paths = toolkit.render_fixed_segments(
            path, segment_seconds, out_dir, timeout=deadline.remaining(),
        )
    except BaseException:
        shutil.rmtree(out_dir, ignore_errors=True)
        raise

    logger.info(
        "Rendered %d fixed-length chunk(s) of %.0fs into %s.",
        len(chunk_paths), segment_seconds, out_dir,
    )
    return chunk_paths


# ---------------------------------------------------------------------------
# Cleanup
# ---------------------------------------------------------------------------


def cleanup_chunks(paths: Iterable[str]) -> None:
    """
    Delete chunk files and their containing temp directories.

    A parent directory is removed only if it is an ``audio-chunks-*``
    directory created by this module. Duplicate and empty paths are
    skipped; files or directories that are already gone are not an error,
    so calling this twice is harmless.
    """
    visited: set[str] = set()
    removed_dirs: set[str] = set()

    for path in paths:
        if not path or path in visited:
            continue
        visited.add(path)

        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Could not remove chunk %s: %s", path, exc)

        # Only directories this module created are removed wholesale.
        parent = os.path.dirname(path)
        if not os.path.basename(parent).startswith(CHUNK_DIR_PREFIX):
            continue
        if parent not in removed_dirs:
            removed_dirs.add(parent)
            shutil.rmtree(parent, ignore_errors=True)

    if visited:
        logger.debug(
            "Cleaned up %d chunk file(s) in %d dir(s).", len(visited), len(removed_dirs),
        )
