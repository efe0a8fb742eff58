"""
audioscribe/stt/models.py
==========================
Transcript Data Types — audioscribe

Responsibility:
    - Define the word / segment / result types produced by the
      speech-to-text client and consumed by the stitcher and structurer
    - Define the sentence / paragraph spans derived from them
    - Serialize everything to the JSON shape returned to callers

All types are immutable. Timestamps are seconds (float).
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Word:
    """A single word with timestamps, as reported by the STT service."""

    text: str
    start: float
    end: float
    confidence: float | None = None

    def shifted(self, offset: float) -> "Word":
        return Word(
            text=self.text,
            start=self.start + offset,
            end=self.end + offset,
            confidence=self.confidence,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"word": self.text, "start": self.start, "end": self.end}
        if self.confidence:
            data["confidence"] = self.confidence
        return data


@dataclass(frozen=True)
class Segment:
    """A coarse, service-provided transcript segment."""

    id: int
    start: float
    end: float
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "start": self.start, "end": self.end, "text": self.text}


@dataclass(frozen=True)
class TranscriptionResult:
    """
    Verbose transcription of one file.

    Produced once per chunk by the client, and once more by the stitcher
    for the whole recording (in which case timestamps span the original
    file rather than a single chunk).
    """

    text: str = ""
    language: str = ""
    duration: float = 0.0
    segments: tuple[Segment, ...] = ()
    words: tuple[Word, ...] = ()


@dataclass(frozen=True)
class TranscriptSpan:
    """A derived sentence (``S<n>``) or paragraph (``P<n>``) span."""

    id: str
    start: float
    end: float
    text: str
    type: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "start": self.start,
            "end": self.end,
            "text": self.text,
            "type": self.type,
        }


@dataclass(frozen=True)
class TranscriptResponse:
    """The caller-facing result of one pipeline invocation."""

    text: str
    language: str
    duration: float
    segments: tuple[Segment, ...]
    words: tuple[Word, ...]
    sentences: tuple[TranscriptSpan, ...]
    paragraphs: tuple[TranscriptSpan, ...]
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"text": self.text}
        if self.language:
            data["language"] = self.language
        data.update({
            "duration": self.duration,
            "segments": [s.to_dict() for s in self.segments],
            "words": [w.to_dict() for w in self.words],
            "sentences": [s.to_dict() for s in self.sentences],
            "paragraphs": [p.to_dict() for p in self.paragraphs],
        })
        if self.warnings:
            data["warnings"] = list(self.warnings)
        return data
