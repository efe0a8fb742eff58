"""
audioscribe/audio/toolkit.py
=============================
Audio Toolkit — audioscribe

Responsibility:
    - Define the small capability interface the chunking pipeline needs
      from an audio toolkit (probe, silence scan, render)
    - Provide the production implementation backed by ffmpeg / ffprobe
      (subprocess), including per-window extraction

Every method is blocking and accepts an optional ``timeout`` (seconds)
derived from the caller's deadline.

This module does NOT:
    - Interpret silence output (see audioscribe.audio.analysis)
    - Decide where to cut (see audioscribe.audio.chunker)
    - Clean up files it did not fail to produce
"""

import glob
import logging
import os
import shutil
import subprocess
from abc import ABC, abstractmethod

from audioscribe.errors import (
    DeadlineExceededError,
    ProbeError,
    RenderError,
    SilenceDetectionError,
    ToolUnavailableError,
)

logger = logging.getLogger("audioscribe.audio.toolkit")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

CHUNK_SAMPLE_RATE = 16000  # Hz
CHUNK_CHANNELS = 1         # mono
CHUNK_NAME_PATTERN = "chunk-%03d.wav"

_UNAVAILABLE_HINT = "please upload a file under 25MB or install ffmpeg"


# ---------------------------------------------------------------------------
# Capability interface
# ---------------------------------------------------------------------------


class AudioToolkit(ABC):
    """What the pipeline needs from an audio toolkit."""

    @abstractmethod
    def probe_duration(self, path: str, timeout: float | None = None) -> float:
        """Return the total duration of *path* in seconds."""

    @abstractmethod
    def detect_silence(
        self,
        path: str,
        noise_db: float,
        min_duration: float,
        timeout: float | None = None,
    ) -> str:
        """Scan *path* and return the raw line-oriented diagnostic stream."""

    @abstractmethod
    def render_segment(
        self,
        path: str,
        start: float,
        end: float,
        out_path: str,
        timeout: float | None = None,
    ) -> None:
        """Write the [start, end) window of *path* to *out_path* (mono 16 kHz)."""

    @abstractmethod
    def render_fixed_segments(
        self,
        path: str,
        segment_seconds: float,
        out_dir: str,
        timeout: float | None = None,
    ) -> list[str]:
        """Split *path* into fixed-length chunk files inside *out_dir*."""


# ---------------------------------------------------------------------------
# ffmpeg implementation
# ---------------------------------------------------------------------------


class FfmpegToolkit(AudioToolkit):
    """Production toolkit: ffprobe / ffmpeg subprocesses."""

    def __init__(self, ffmpeg_binary: str = "ffmpeg", ffprobe_binary: str = "ffprobe"):
        self.ffmpeg_binary = ffmpeg_binary
        self.ffprobe_binary = ffprobe_binary

    def probe_duration(self, path: str, timeout: float | None = None) -> float:
        self._require(self.ffprobe_binary)
        cmd = [
            self.ffprobe_binary,
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "default=nw=1:nk=1",
            path,
        ]
        result = self._run(cmd, timeout, merge_stderr=False)
        if result.returncode != 0:
            raise ProbeError(
                f"failed to read audio duration: {(result.stderr or '').strip()}"
            )
        try:
            return float(result.stdout.strip())
        except ValueError as exc:
            raise ProbeError(
                f"failed to read audio duration: unexpected output {result.stdout.strip()!r}"
            ) from exc

    def detect_silence(
        self,
        path: str,
        noise_db: float,
        min_duration: float,
        timeout: float | None = None,
    ) -> str:
        self._require(self.ffmpeg_binary)
        cmd = [
            self.ffmpeg_binary,
            "-i", path,
            "-af", f"silencedetect=noise={noise_db:g}dB:d={min_duration:.2f}",
            "-f", "null",
            "-",
        ]
        result = self._run(cmd, timeout)
        if result.returncode != 0:
            raise SilenceDetectionError(
                f"silence detection failed: {result.stdout.strip()}"
            )
        return result.stdout

    def render_segment(
        self,
        path: str,
        start: float,
        end: float,
        out_path: str,
        timeout: float | None = None,
    ) -> None:
        self._require(self.ffmpeg_binary)
        cmd = [
            self.ffmpeg_binary,
            "-y",
            "-i", path,
            "-ss", f"{start:.3f}",
            "-to", f"{end:.3f}",
            "-ac", str(CHUNK_CHANNELS),
            "-ar", str(CHUNK_SAMPLE_RATE),
            out_path,
        ]
        result = self._run(cmd, timeout)
        if result.returncode != 0:
            raise RenderError(
                f"ffmpeg chunking failed for {start:.3f}-{end:.3f}s: {result.stdout.strip()}"
            )

    def render_fixed_segments(
        self,
        path: str,
        segment_seconds: float,
        out_dir: str,
        timeout: float | None = None,
    ) -> list[str]:
        self._require(self.ffmpeg_binary)
        cmd = [
            self.ffmpeg_binary,
            "-y",
            "-i", path,
            "-f", "segment",
            "-segment_time", f"{segment_seconds:.0f}",
            "-reset_timestamps", "1",
            "-ac", str(CHUNK_CHANNELS),
            "-ar", str(CHUNK_SAMPLE_RATE),
            os.path.join(out_dir, CHUNK_NAME_PATTERN),
        ]
        result = self._run(cmd, timeout)
        if result.returncode != 0:
            raise RenderError(f"ffmpeg chunking failed: {result.stdout.strip()}")

        chunk_paths = sorted(glob.glob(os.path.join(out_dir, "chunk-*.wav")))
        if not chunk_paths:
            raise RenderError("failed to generate audio chunks")
        return chunk_paths

    # -- helpers ----------------------------------------------------------

    @staticmethod
    def _require(binary: str) -> None:
        if shutil.which(binary) is None:
            name = os.path.basename(binary)
            raise ToolUnavailableError(
                f"{name} not available for chunking; {_UNAVAILABLE_HINT}"
            )

    @staticmethod
    def _run(
        cmd: list[str],
        timeout: float | None,
        merge_stderr: bool = True,
    ) -> subprocess.CompletedProcess:
        logger.debug("Running: %s", " ".join(cmd))
        try:
            return subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
                text=True,
                timeout=timeout,
                check=False,
            )
        except FileNotFoundError as exc:
            name = os.path.basename(cmd[0])
            raise ToolUnavailableError(
                f"{name} not available for chunking; {_UNAVAILABLE_HINT}"
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise DeadlineExceededError(
                f"{os.path.basename(cmd[0])} did not finish within {timeout:.1f}s"
            ) from exc
