# backend/tests/test_analyze_api.py
import io
import os
import types

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.datastructures import UploadFile as StarletteUploadFile

import api.analyze as analyze_mod
from main import mount_frontend
from services.transcription import PROCESSING_ERROR_TEXT

QUESTION = "What are your strengths?"
TRANSCRIPT = "I am a hard worker and I always meet my deadlines."


def _audio(payload: bytes = b"\x1aE\xdf\xa3 fake webm"):
    return {"audio": ("answer.webm", io.BytesIO(payload), "audio/webm")}


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json().get("ok") is True


def test_request_id_is_echoed(client):
    r = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert r.headers["X-Request-ID"] == "req-123"
    assert client.get("/health").headers.get("X-Request-ID")


def test_missing_audio_is_400(api):
    r = api.post("/api/analyze-response", data={"question": QUESTION})
    assert r.status_code == 400
    assert r.json() == {"error": "No audio file provided"}


def test_oversized_audio_is_413(api, test_settings):
    test_settings.max_upload_bytes = 8
    r = api.post("/api/analyze-response", data={"question": QUESTION}, files=_audio(b"0123456789"))
    assert r.status_code == 413
    assert "error" in r.json()
    assert os.listdir(test_settings.upload_dir) == []


def test_declared_size_is_checked_before_reading(api, test_settings, monkeypatch):
    async def must_not_read(self, size=-1):
        raise AssertionError("oversized upload was buffered")

    monkeypatch.setattr(StarletteUploadFile, "read", must_not_read)
    test_settings.max_upload_bytes = 8

    r = api.post("/api/analyze-response", data={"question": QUESTION}, files=_audio(b"0123456789"))
    assert r.status_code == 413


def test_end_to_end_reference_answer(api, upstream, test_settings):
    r = api.post("/api/analyze-response", data={"question": QUESTION}, files=_audio())
    assert r.status_code == 200, r.text
    body = r.json()

    assert body["question"] == QUESTION
    assert body["transcription"] == TRANSCRIPT

    assert body["grammarScore"] == 10
    assert body["grammarComments"].startswith("Your grammar is excellent.")

    assert body["confidenceMetrics"]["wordCount"] == 11
    assert body["confidenceMetrics"]["fillerWordRate"] == 0
    assert body["confidenceScore"] == 8

    # heuristic content analysis (no LLM key): no keyword overlap, short answer
    assert body["contentScore"] == 4
    assert body["strengths"]
    assert len(body["improvementSuggestions"]) <= 3

    assert "/v2/check" in upstream.paths()
    # original upload and converted copy are both gone
    assert os.listdir(test_settings.upload_dir) == []


def test_every_upstream_down_still_returns_report(api, upstream, test_settings):
    upstream.all_down()

    r = api.post("/api/analyze-response", data={"question": QUESTION}, files=_audio())
    assert r.status_code == 200, r.text
    body = r.json()

    assert body["transcription"] == "Error during transcription"
    assert 5 <= body["grammarScore"] <= 10
    assert 1 <= body["confidenceScore"] <= 10
    assert 1 <= body["contentScore"] <= 10
    assert body["strengths"] and body["weaknesses"]


def test_normalizer_failure_uses_fallback_transcription(api, upstream, test_settings):
    from api import deps
    from main import app

    def broken(src, ffmpeg_binary):
        raise RuntimeError("ffmpeg missing")

    app.dependency_overrides[deps.get_normalizer] = lambda: broken

    r = api.post("/api/analyze-response", data={"question": QUESTION}, files=_audio())
    assert r.status_code == 200
    assert r.json()["transcription"] == PROCESSING_ERROR_TEXT
    assert os.listdir(test_settings.upload_dir) == []


def test_failed_transcode_leaves_no_files(api, test_settings, monkeypatch):
    from api import deps
    from main import app
    import services.audio_normalizer as normalizer_mod

    def half_written(cmd, stdout=None, stderr=None):
        with open(cmd[-1], "wb") as f:
            f.write(b"RIFF half")
        return types.SimpleNamespace(returncode=1, stderr=b"Error while decoding stream")

    monkeypatch.setattr(normalizer_mod.subprocess, "run", half_written)
    app.dependency_overrides[deps.get_normalizer] = lambda: normalizer_mod.normalize_audio

    r = api.post("/api/analyze-response", data={"question": QUESTION}, files=_audio())
    assert r.status_code == 200
    assert r.json()["transcription"] == PROCESSING_ERROR_TEXT
    assert os.listdir(test_settings.upload_dir) == []


def test_pipeline_exception_is_500(api, test_settings, monkeypatch):
    async def boom(*args, **kwargs):
        raise RuntimeError("pipeline exploded")

    monkeypatch.setattr(analyze_mod, "analyze_response", boom)

    r = api.post("/api/analyze-response", data={"question": QUESTION}, files=_audio())
    assert r.status_code == 500
    assert r.json() == {"error": "Error processing interview response", "details": "pipeline exploded"}
    assert os.listdir(test_settings.upload_dir) == []


def test_cleanup_failure_is_not_surfaced(api, monkeypatch):
    real_remove = os.remove

    def flaky_remove(path):
        if os.path.basename(path).endswith("-answer.webm"):
            raise PermissionError("file is locked")
        real_remove(path)

    monkeypatch.setattr(analyze_mod.os, "remove", flaky_remove)

    r = api.post("/api/analyze-response", data={"question": QUESTION}, files=_audio())
    assert r.status_code == 200


# -------------------------------------------------------------------------------------------------
# Question bank
# -------------------------------------------------------------------------------------------------
def test_question_list(api, test_settings):
    r = api.get("/api/questions")
    assert r.status_code == 200
    assert r.json() == test_settings.questions
    assert r.json()[0] == "Tell me about yourself."


@pytest.mark.parametrize("answered, index", [(0, 0), (1, 1), (11, 0), (13, 2)])
def test_next_question_wraps(api, answered, index):
    r = api.get("/api/questions/next", params={"answered": answered})
    assert r.status_code == 200
    body = r.json()
    assert body["index"] == index
    assert body["total"] == 11


def test_custom_question_bank(api, test_settings):
    test_settings.questions = ["Only question?"]
    assert api.get("/api/questions/next", params={"answered": 5}).json()["question"] == "Only question?"


# -------------------------------------------------------------------------------------------------
# SPA fallback
# -------------------------------------------------------------------------------------------------
def test_frontend_fallback_serves_index(tmp_path):
    build = tmp_path / "build"
    (build / "static").mkdir(parents=True)
    (build / "index.html").write_text("<html>app</html>")
    (build / "static" / "main.js").write_text("console.log(1)")
    (build / "favicon.ico").write_bytes(b"ico")

    spa = FastAPI()
    assert mount_frontend(spa, str(build)) is True
    c = TestClient(spa)

    assert c.get("/interview/session").text == "<html>app</html>"
    assert c.get("/").text == "<html>app</html>"
    assert c.get("/static/main.js").text == "console.log(1)"
    assert c.get("/favicon.ico").content == b"ico"
    assert c.get("/api/unknown").status_code == 404


def test_frontend_fallback_skips_missing_build(tmp_path):
    assert mount_frontend(FastAPI(), str(tmp_path / "missing")) is False
