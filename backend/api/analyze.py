# backend/api/analyze.py
import os
import random
import logging
from typing import Callable, Optional
from uuid import uuid4

import httpx
from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from api.deps import get_http_client, get_normalizer, get_rng, get_settings
from core.config import Settings
from schemas.feedback import FeedbackReport
from services.pipeline import analyze_response

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["analysis"])


def _upload_path(upload_dir: str, filename: Optional[str]) -> str:
    name = os.path.basename(filename or "") or "recording.webm"
    return os.path.join(upload_dir, f"{uuid4()}-{name}")


def _too_large(limit: int) -> JSONResponse:
    return JSONResponse(status_code=413, content={"error": f"Audio file exceeds {limit} bytes"})


@router.post("/analyze-response", response_model=FeedbackReport)
async def analyze_interview_response(
    audio: Optional[UploadFile] = File(None),
    question: str = Form(""),
    settings: Settings = Depends(get_settings),
    http: httpx.AsyncClient = Depends(get_http_client),
    rng: random.Random = Depends(get_rng),
    normalizer: Callable[..., str] = Depends(get_normalizer),
):
    if audio is None:
        return JSONResponse(status_code=400, content={"error": "No audio file provided"})

    if audio.size is not None and audio.size > settings.max_upload_bytes:
        return _too_large(settings.max_upload_bytes)

    audio_bytes = await audio.read()
    if len(audio_bytes) > settings.max_upload_bytes:
        return _too_large(settings.max_upload_bytes)

    os.makedirs(settings.upload_dir, exist_ok=True)
    path = _upload_path(settings.upload_dir, audio.filename)
    try:
        with open(path, "wb") as f:
            f.write(audio_bytes)
        log.info("Processing audio file: %s (%d bytes)", os.path.basename(path), len(audio_bytes))

        report = await analyze_response(
            path,
            question,
            http=http,
            settings=settings,
            rng=rng,
            normalizer=normalizer,
        )
        return report
    except Exception as e:
        log.exception("Error processing interview response")
        return JSONResponse(
            status_code=500,
            content={"error": "Error processing interview response", "details": str(e)},
        )
    finally:
        # best-effort cleanup
        try:
            os.remove(path)
        except OSError as e:
            log.error("Error deleting file %s: %s", path, e)
