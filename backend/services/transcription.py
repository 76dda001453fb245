# backend/services/transcription.py
from __future__ import annotations
import os
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict

import httpx

from core.config import Settings
from schemas.feedback import TranscriptionResult
from services.audio_normalizer import normalize_audio

log = logging.getLogger(__name__)

FALLBACK_TEXT = (
    "I couldn't clearly capture what you said. Please try speaking more clearly "
    "and ensure your microphone is working properly."
)
PROCESSING_ERROR_TEXT = "There was an error processing your audio. Please try again."


def fallback_transcription(reason: str = "") -> TranscriptionResult:
    log.warning("Using fallback transcription: %s", reason or "no reason given")
    return TranscriptionResult(
        text=reason or FALLBACK_TEXT,
        segments=[],
        language="english",
        is_fallback=True,
    )


def _auth_headers(api_key: str, content_type: str | None = None) -> Dict[str, str]:
    headers = {"Authorization": api_key}
    if content_type:
        headers["Content-Type"] = content_type
    return headers


async def transcribe_wav(
    wav_path: str,
    http: httpx.AsyncClient,
    settings: Settings,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> TranscriptionResult:
    """
    Upload -> create job -> poll, against the hosted speech-to-text API.
    Never raises: every failure turns into a fallback transcription.
    """
    base = settings.assemblyai_base_url.rstrip("/")
    key = settings.assemblyai_api_key
    try:
        if not os.path.exists(wav_path):
            log.error("Audio file not found: %s", wav_path)
            return fallback_transcription("Audio file not found")

        with open(wav_path, "rb") as f:
            audio_data = f.read()
        log.info("Uploading %d bytes of audio", len(audio_data))

        # 1) upload
        r = await http.post(
            f"{base}/v2/upload",
            content=audio_data,
            headers=_auth_headers(key, "application/octet-stream"),
        )
        r.raise_for_status()
        upload_url = (r.json() or {}).get("upload_url")
        if not upload_url:
            log.error("Upload response carried no upload_url: %s", r.text[:300])
            return fallback_transcription("Failed to upload audio")

        # 2) create job
        r = await http.post(
            f"{base}/v2/transcript",
            json={"audio_url": upload_url, "language_detection": True},
            headers=_auth_headers(key, "application/json"),
        )
        r.raise_for_status()
        transcript_id = (r.json() or {}).get("id")
        if not transcript_id:
            log.error("Job response carried no id: %s", r.text[:300])
            return fallback_transcription("Failed to submit transcription job")
        log.info("Transcription requested, id=%s", transcript_id)

        # 3) poll
        attempts = settings.transcription_poll_attempts
        for i in range(attempts):
            log.info("Checking transcription status (attempt %d/%d)", i + 1, attempts)
            r = await http.get(f"{base}/v2/transcript/{transcript_id}", headers=_auth_headers(key))
            r.raise_for_status()
            body = r.json() or {}
            status = body.get("status")

            if status == "completed":
                log.info("Transcription completed")
                return TranscriptionResult(
                    text=body.get("text") or "",
                    segments=body.get("words") or [],
                    language=body.get("language_code") or "en",
                )
            if status == "error":
                log.error("Transcription error: %s", body.get("error"))
                return fallback_transcription(f"Transcription error: {body.get('error')}")

            await sleep(settings.transcription_poll_interval)

        return fallback_transcription("Transcription timed out")
    except httpx.HTTPStatusError as e:
        log.error("Transcription HTTP %s: %s", e.response.status_code, e.response.text[:300])
        return fallback_transcription("Error during transcription")
    except Exception:
        log.exception("Error in transcription process")
        return fallback_transcription("Error during transcription")


async def process_audio(
    audio_path: str,
    http: httpx.AsyncClient,
    settings: Settings,
    normalizer: Callable[..., str] = normalize_audio,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> TranscriptionResult:
    """Normalize the upload to 16k mono WAV, then transcribe it."""
    try:
        wav_path = await asyncio.to_thread(normalizer, audio_path, settings.ffmpeg_binary)
    except Exception:
        log.exception("Error in audio processing")
        return fallback_transcription(PROCESSING_ERROR_TEXT)

    try:
        return await transcribe_wav(wav_path, http, settings, sleep=sleep)
    finally:
        try:
            os.remove(wav_path)
        except OSError as e:
            log.warning("Error deleting converted audio file %s: %s", wav_path, e)
