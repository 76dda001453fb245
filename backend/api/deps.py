# api/deps.py
import random
from typing import AsyncIterator

import httpx
from fastapi import Depends

from core.config import Settings, settings as _settings
from services.audio_normalizer import normalize_audio


def get_settings() -> Settings:
    return _settings


async def get_http_client(settings: Settings = Depends(get_settings)) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
        yield client


def get_rng(settings: Settings = Depends(get_settings)) -> random.Random:
    # seed=None -> OS entropy; ANALYSIS_SEED makes reports reproducible
    return random.Random(settings.analysis_seed)


def get_normalizer():
    return normalize_audio
