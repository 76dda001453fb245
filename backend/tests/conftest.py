# backend/tests/conftest.py
import os
import sys
import shutil
import random
import asyncio
import pathlib

import httpx
import pytest
from fastapi.testclient import TestClient

# -------------------------------------------------------------------------------------------------
# Path & environment setup (must happen BEFORE importing your app)
# -------------------------------------------------------------------------------------------------

# Ensure project root (backend/) is importable
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("APP_ENV", "development")
os.environ.setdefault("CORS_ORIGINS", "http://localhost:3000")
os.environ.setdefault("ASSEMBLYAI_API_KEY", "test-assembly-key")
os.environ.setdefault("TRANSCRIPTION_POLL_INTERVAL", "0")
os.environ.setdefault("LOG_LEVEL", "WARNING")
# heuristic content analysis unless a test opts into the LLM path
os.environ["MISTRAL_API_KEY"] = ""


# -------------------------------------------------------------------------------------------------
# Import app & modules AFTER env vars
# -------------------------------------------------------------------------------------------------
from main import app
from api import deps
from core.config import Settings
from services.audio_normalizer import converted_path_for


TRANSCRIPT = "I am a hard worker and I always meet my deadlines."
QUESTION = "What are your strengths?"


# -------------------------------------------------------------------------------------------------
# Deterministic randomness
# -------------------------------------------------------------------------------------------------
class FixedRandom(random.Random):
    """random() always returns `value`; randrange() always returns `extra`."""

    def __init__(self, value: float = 0.5, extra: int = 0):
        super().__init__(0)
        self.value = value
        self.extra = extra

    def random(self):
        return self.value

    def randrange(self, *args, **kwargs):
        return self.extra


@pytest.fixture
def fixed_rng():
    return FixedRandom


# -------------------------------------------------------------------------------------------------
# ---- Fake upstream APIs (no network) ----
class FakeUpstream:
    """
    One MockTransport handler for speech-to-text, grammar and chat endpoints.
    Each reply spec is a dict (200 JSON), an int (error status) or an exception (raised).
    """

    def __init__(self):
        self.upload = {"upload_url": "https://cdn.assemblyai.test/upload/abc"}
        self.job = {"id": "tx-1"}
        self.polls = [{"status": "completed", "text": TRANSCRIPT, "words": [{"text": "I"}], "language_code": "en_us"}]
        self.grammar = {"matches": []}
        self.chat = 500
        self.requests = []

    def _reply(self, spec):
        if isinstance(spec, Exception):
            raise spec
        if isinstance(spec, int):
            return httpx.Response(spec, json={"error": "upstream failure"})
        return httpx.Response(200, json=spec)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/v2/upload":
            return self._reply(self.upload)
        if path == "/v2/transcript":
            return self._reply(self.job)
        if path.startswith("/v2/transcript/"):
            spec = self.polls.pop(0) if len(self.polls) > 1 else self.polls[0]
            return self._reply(spec)
        if path == "/v2/check":
            return self._reply(self.grammar)
        if path == "/v1/chat/completions":
            if isinstance(self.chat, str):
                return httpx.Response(200, json={"choices": [{"message": {"content": self.chat}}]})
            return self._reply(self.chat)
        return httpx.Response(404)

    def paths(self):
        return [r.url.path for r in self.requests]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def all_down(self):
        down = httpx.ConnectError("connection refused")
        self.upload = self.job = self.grammar = self.chat = down


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def run_with_http(upstream):
    """Run `fn(http)` to completion against the fake upstream."""
    def _run(fn):
        async def _go():
            async with upstream.client() as http:
                return await fn(http)
        return asyncio.run(_go())
    return _run


@pytest.fixture
def test_settings(tmp_path):
    upload_dir = tmp_path / "uploads"
    upload_dir.mkdir()
    return Settings(
        upload_dir=str(upload_dir),
        assemblyai_api_key="test-assembly-key",
        transcription_poll_attempts=3,
        transcription_poll_interval=0,
        mistral_api_key=None,
    )


def fake_normalizer(src_path: str, ffmpeg_binary: str = "ffmpeg") -> str:
    dst = converted_path_for(src_path)
    shutil.copyfile(src_path, dst)
    return dst


# -------------------------------------------------------------------------------------------------
# TestClient
# -------------------------------------------------------------------------------------------------
@pytest.fixture(scope="session")
def client():
    return TestClient(app)


@pytest.fixture
def api(client, upstream, test_settings, fixed_rng):
    """
    TestClient wired to the fake upstream, a temp upload dir, a copy-only
    normalizer and a fixed random source. Overrides are removed afterwards.
    """
    async def _http():
        async with upstream.client() as c:
            yield c

    app.dependency_overrides[deps.get_settings] = lambda: test_settings
    app.dependency_overrides[deps.get_http_client] = _http
    app.dependency_overrides[deps.get_normalizer] = lambda: fake_normalizer
    app.dependency_overrides[deps.get_rng] = lambda: fixed_rng(0.5, 0)
    try:
        yield client
    finally:
        app.dependency_overrides.clear()
