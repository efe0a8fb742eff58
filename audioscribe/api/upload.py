"""
audioscribe/api/upload.py
==========================
API Upload Endpoint — audioscribe

Responsibility:
    - Expose POST /api/v1/audio/transcribe
    - Accept a single audio file via multipart/form-data (field ``file``)
    - Resolve the OpenAI credential (X-OpenAI-API-Key header, else the
      configured key)
    - Reject missing files, unsupported extensions, and oversize uploads
    - Spool the upload to a temp file and hand it to the pipeline
    - Map pipeline failures onto HTTP responses

This module does NOT:
    - Chunk, transcribe, or segment audio (see audioscribe.pipeline)
    - Store uploads beyond the lifetime of the request
"""

import asyncio
import logging
import os
import tempfile
from functools import lru_cache

from fastapi import Depends, FastAPI, File, Header, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from audioscribe.config import TranscriptionSettings
from audioscribe.errors import AudioInputError, TranscriptionPipelineError
from audioscribe.pipeline import human_size, transcribe_file

logger = logging.getLogger("audioscribe.api")

ALLOWED_EXTENSIONS = {
    ".mp3", ".mp4", ".mpeg", ".mpga", ".m4a", ".wav", ".webm", ".ogg", ".flac",
}
BYOK_HEADER = "X-OpenAI-API-Key"
_READ_BLOCK_BYTES = 1 << 20


@lru_cache(maxsize=1)
def get_settings() -> TranscriptionSettings:
    return TranscriptionSettings.from_env()


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="audioscribe",
    description="Long-recording transcription with sentence and paragraph structure.",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}


@app.post("/api/v1/audio/transcribe")
async def transcribe_audio(
    file: UploadFile | None = File(None),
    user_api_key: str | None = Header(None, alias=BYOK_HEADER),
    settings: TranscriptionSettings = Depends(get_settings),
):
    """
    Accept an audio file and return its structured transcript.

    Returns:
        200 with {text, language, duration, segments, words, sentences,
        paragraphs, warnings?}; 400 / 413 on rejected input; 502 when the
        pipeline fails upstream.
    """
    api_key = (user_api_key or "").strip() or settings.openai_api_key
    if not api_key:
        return _error(500, "OpenAI API key not configured")

    if file is None or not file.filename:
        return _error(400, "file is required")

    limit_message = f"file exceeds {human_size(settings.max_upload_bytes)} limit"
    if file.size is not None and file.size > settings.max_upload_bytes:
        return _error(413, limit_message)

    ext = os.path.splitext(file.filename)[1].lower()
    if ext not in ALLOWED_EXTENSIONS:
        return _error(400, "unsupported audio format")

    logger.info("Audio file received: %s", file.filename)

    tmp = tempfile.NamedTemporaryFile(prefix="audio-upload-", suffix=ext, delete=False)
    try:
        try:
            copied = await _spool_upload(file, tmp, settings.max_upload_bytes)
        finally:
            tmp.close()
        if copied > settings.max_upload_bytes:
            return _error(413, limit_message)

        logger.info("File size: %.2f KB", copied / 1024)

        try:
            response = await asyncio.to_thread(
                transcribe_file, tmp.name, api_key, settings,
            )
        except AudioInputError as exc:
            return _error(400, exc.message, exc.kind)
        except TranscriptionPipelineError as exc:
            logger.error("Transcription failed (%s): %s", exc.kind, exc.message)
            return _error(502, exc.message, exc.kind)
        except Exception as exc:
            logger.error("Transcription unexpected error: %s", exc, exc_info=True)
            return _error(500, f"transcription failed: {exc}")
    finally:
        _remove_quietly(tmp.name)

    logger.info(
        "Transcription complete: %d sentence(s), %d paragraph(s).",
        len(response.sentences), len(response.paragraphs),
    )
    return JSONResponse(status_code=200, content=response.to_dict())


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _spool_upload(file: UploadFile, dest, limit: int) -> int:
    """Copy the upload to *dest*; stops as soon as *limit* is exceeded."""
    copied = 0
    while True:
        block = await file.read(_READ_BLOCK_BYTES)
        if not block:
            break
        copied += len(block)
        if copied > limit:
            break
        dest.write(block)
    return copied


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Could not remove upload %s: %s", path, exc)


def _error(status_code: int, message: str, kind: str | None = None) -> JSONResponse:
    content = {"error": message}
    if kind:
        content["kind"] = kind
    return JSONResponse(status_code=status_code, content=content)
