"""
tests/test_toolkit.py
======================
ffmpeg Toolkit Tests — audioscribe

Tests verify the command lines handed to ffprobe / ffmpeg, the mapping
of exit codes, missing binaries and timeouts onto pipeline errors, and
the per-window renderer.

All tests are OFFLINE: subprocess and shutil.which are mocked.
"""

import os
import shutil
import subprocess
import sys
import tempfile
import unittest
from unittest.mock import patch

# Ensure project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from audioscribe.audio.toolkit import FfmpegToolkit
from audioscribe.errors import (
    DeadlineExceededError,
    ProbeError,
    RenderError,
    SilenceDetectionError,
    ToolUnavailableError,
)

_MODULE = "audioscribe.audio.toolkit"


def _completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


@patch(f"{_MODULE}.shutil.which", return_value="/usr/bin/tool")
class TestProbe(unittest.TestCase):

    @patch(f"{_MODULE}.subprocess.run")
    def test_parses_duration(self, mock_run, _which):
        mock_run.return_value = _completed(stdout="1502.384000\n")
        duration = FfmpegToolkit().probe_duration("talk.mp3", timeout=12.0)

        self.assertAlmostEqual(duration, 1502.384)
        cmd = mock_run.call_args.args[0]
        self.assertEqual(cmd[0], "ffprobe")
        self.assertIn("format=duration", cmd)
        self.assertEqual(cmd[-1], "talk.mp3")
        self.assertEqual(mock_run.call_args.kwargs["timeout"], 12.0)

    @patch(f"{_MODULE}.subprocess.run")
    def test_non_zero_exit_is_probe_error(self, mock_run, _which):
        mock_run.return_value = _completed(returncode=1, stderr="talk.mp3: Invalid data")
        with self.assertRaises(ProbeError) as ctx:
            FfmpegToolkit().probe_duration("talk.mp3")
        self.assertIn("Invalid data", ctx.exception.message)

    @patch(f"{_MODULE}.subprocess.run")
    def test_non_numeric_output_is_probe_error(self, mock_run, _which):
        mock_run.return_value = _completed(stdout="N/A\n")
        with self.assertRaises(ProbeError):
            FfmpegToolkit().probe_duration("talk.mp3")

    @patch(f"{_MODULE}.subprocess.run")
    def test_timeout_is_deadline_error(self, mock_run, _which):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="ffprobe", timeout=1.0)
        with self.assertRaises(DeadlineExceededError):
            FfmpegToolkit().probe_duration("talk.mp3", timeout=1.0)


class TestMissingBinaries(unittest.TestCase):

    @patch(f"{_MODULE}.shutil.which", return_value=None)
    def test_missing_ffprobe(self, _which):
        with self.assertRaises(ToolUnavailableError) as ctx:
            FfmpegToolkit().probe_duration("talk.mp3")
        self.assertIn("ffprobe not available", ctx.exception.message)

    @patch(f"{_MODULE}.shutil.which", return_value=None)
    def test_missing_ffmpeg(self, _which):
        with self.assertRaises(ToolUnavailableError) as ctx:
            FfmpegToolkit().detect_silence("talk.mp3", -30.0, 0.4)
        self.assertIn("ffmpeg not available", ctx.exception.message)

    @patch(f"{_MODULE}.subprocess.run", side_effect=FileNotFoundError("ffmpeg"))
    @patch(f"{_MODULE}.shutil.which", return_value="/usr/bin/ffmpeg")
    def test_binary_vanishing_between_check_and_run(self, _which, _run):
        with self.assertRaises(ToolUnavailableError):
            FfmpegToolkit().detect_silence("talk.mp3", -30.0, 0.4)


@patch(f"{_MODULE}.shutil.which", return_value="/usr/bin/ffmpeg")
class TestDetectSilence(unittest.TestCase):

    @patch(f"{_MODULE}.subprocess.run")
    def test_builds_silencedetect_filter(self, mock_run, _which):
        mock_run.return_value = _completed(stdout="[silencedetect @ 0x1] silence_start: 1\n")
        output = FfmpegToolkit().detect_silence("talk.mp3", -30.0, 0.4)

        cmd = mock_run.call_args.args[0]
        self.assertIn("silencedetect=noise=-30dB:d=0.40", cmd)
        self.assertEqual(cmd[-3:], ["-f", "null", "-"])
        self.assertEqual(mock_run.call_args.kwargs["stderr"], subprocess.STDOUT)
        self.assertIn("silence_start", output)

    @patch(f"{_MODULE}.subprocess.run")
    def test_non_zero_exit_is_detection_error(self, mock_run, _which):
        mock_run.return_value = _completed(returncode=1, stdout="talk.mp3: No such file\n")
        with self.assertRaises(SilenceDetectionError) as ctx:
            FfmpegToolkit().detect_silence("talk.mp3", -30.0, 0.4)
        self.assertIn("No such file", ctx.exception.message)


@patch(f"{_MODULE}.shutil.which", return_value="/opt/ff/bin/ffmpeg")
class TestRenderSegment(unittest.TestCase):

    @patch(f"{_MODULE}.subprocess.run")
    def test_extracts_window_with_configured_binary_and_timeout(self, mock_run, _which):
        mock_run.return_value = _completed()
        toolkit = FfmpegToolkit(ffmpeg_binary="/opt/ff/bin/ffmpeg")

        toolkit.render_segment("talk.mp3", 581.0, 1181.5, "/tmp/chunk-002.wav", timeout=42.5)

        cmd = mock_run.call_args.args[0]
        self.assertEqual(cmd[0], "/opt/ff/bin/ffmpeg")
        self.assertEqual(cmd[cmd.index("-i") + 1], "talk.mp3")
        self.assertEqual(cmd[cmd.index("-ss") + 1], "581.000")
        self.assertEqual(cmd[cmd.index("-to") + 1], "1181.500")
        self.assertEqual(cmd[cmd.index("-ac") + 1], "1")
        self.assertEqual(cmd[cmd.index("-ar") + 1], "16000")
        self.assertEqual(cmd[-1], "/tmp/chunk-002.wav")
        self.assertEqual(mock_run.call_args.kwargs["timeout"], 42.5)

    @patch(f"{_MODULE}.subprocess.run")
    def test_wav_source_goes_through_ffmpeg(self, mock_run, _which):
        mock_run.return_value = _completed()

        FfmpegToolkit().render_segment("huge.wav", 0.0, 600.0, "/tmp/chunk-001.wav", timeout=10.0)

        mock_run.assert_called_once()
        cmd = mock_run.call_args.args[0]
        self.assertEqual(cmd[cmd.index("-i") + 1], "huge.wav")
        self.assertEqual(cmd[cmd.index("-to") + 1], "600.000")
        self.assertEqual(mock_run.call_args.kwargs["timeout"], 10.0)

    @patch(f"{_MODULE}.subprocess.run")
    def test_non_zero_exit_is_render_error(self, mock_run, _which):
        mock_run.return_value = _completed(returncode=1, stdout="talk.mp3: Invalid data found")
        with self.assertRaises(RenderError) as ctx:
            FfmpegToolkit().render_segment("talk.mp3", 0.0, 600.0, "/tmp/chunk-001.wav")
        self.assertIn("Invalid data found", ctx.exception.message)

    @patch(f"{_MODULE}.subprocess.run")
    def test_timeout_is_deadline_error(self, mock_run, _which):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="ffmpeg", timeout=0.5)
        with self.assertRaises(DeadlineExceededError):
            FfmpegToolkit().render_segment("talk.mp3", 0.0, 600.0, "/tmp/chunk-001.wav", timeout=0.5)


@patch(f"{_MODULE}.shutil.which", return_value="/usr/bin/ffmpeg")
class TestRenderFixedSegments(unittest.TestCase):

    def setUp(self):
        self.out_dir = tempfile.mkdtemp(prefix="audio-chunks-")

    def tearDown(self):
        shutil.rmtree(self.out_dir, ignore_errors=True)

    @patch(f"{_MODULE}.subprocess.run")
    def test_returns_sorted_chunk_paths(self, mock_run, _which):
        def fake_run(cmd, **kwargs):
            for name in ("chunk-002.wav", "chunk-000.wav", "chunk-001.wav"):
                open(os.path.join(self.out_dir, name), "wb").close()
            return _completed()

        mock_run.side_effect = fake_run
        paths = FfmpegToolkit().render_fixed_segments("talk.mp3", 600.0, self.out_dir)

        self.assertEqual(
            [os.path.basename(p) for p in paths],
            ["chunk-000.wav", "chunk-001.wav", "chunk-002.wav"],
        )
        cmd = mock_run.call_args.args[0]
        self.assertIn("segment", cmd)
        self.assertEqual(cmd[cmd.index("-segment_time") + 1], "600")
        self.assertEqual(cmd[cmd.index("-ar") + 1], "16000")
        self.assertEqual(cmd[cmd.index("-ac") + 1], "1")

    @patch(f"{_MODULE}.subprocess.run")
    def test_no_chunks_is_render_error(self, mock_run, _which):
        mock_run.return_value = _completed()
        with self.assertRaises(RenderError):
            FfmpegToolkit().render_fixed_segments("talk.mp3", 600.0, self.out_dir)

    @patch(f"{_MODULE}.subprocess.run")
    def test_non_zero_exit_is_render_error(self, mock_run, _which):
        mock_run.return_value = _completed(returncode=1, stdout="Invalid argument")
        with self.assertRaises(RenderError):
            FfmpegToolkit().render_fixed_segments("talk.mp3", 600.0, self.out_dir)


if __name__ == "__main__":
    unittest.main()
