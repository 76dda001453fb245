# backend/main.py
"""
Interview feedback API.

POST /api/analyze-response takes a recorded answer plus its question and returns
grammar, confidence and content scores. In production mode the pre-built
frontend is served for any path the API does not handle.
"""
import os
import logging
from dotenv import load_dotenv

# Candidate .env locations (in order)
#  - PROJECT_ROOT/.env
#  - BACKEND_DIR/.env
BASE_DIR = os.path.dirname(os.path.abspath(__file__))        # backend/
PROJECT_ROOT = os.path.dirname(BASE_DIR)                     # project root (parent of backend)

for p in (os.path.join(PROJECT_ROOT, ".env"), os.path.join(BASE_DIR, ".env")):
    if os.path.exists(p):
        load_dotenv(p, override=False)
        break
else:
    load_dotenv(override=False)
# ---------------------------------------------------------

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from api import analyze, questions
from core.config import settings
from core.logging import setup_json_logging
from core.request_id import RequestIDMiddleware

setup_json_logging(settings.log_level.upper())
log = logging.getLogger(__name__)

app = FastAPI(title="Interview Feedback API")

app.include_router(analyze.router)
app.include_router(questions.router)

app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials="*" not in settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Minimal endpoints (always present)
@app.get("/health")
def health():
    return {"ok": True}


def mount_frontend(application: FastAPI, build_dir: str) -> bool:
    """
    Serve a pre-built single-page app: real files as-is, everything else -> index.html.
    Returns False (and mounts nothing) when the build is missing.
    """
    build_dir = os.path.abspath(os.path.join(BASE_DIR, build_dir))
    index_html = os.path.join(build_dir, "index.html")
    if not os.path.isfile(index_html):
        log.warning("Frontend build not found at %s; SPA fallback disabled", build_dir)
        return False

    static_dir = os.path.join(build_dir, "static")
    if os.path.isdir(static_dir):
        application.mount("/static", StaticFiles(directory=static_dir), name="static")

    @application.get("/{full_path:path}", include_in_schema=False)
    def spa_fallback(full_path: str):
        if full_path.startswith("api/"):
            raise HTTPException(status_code=404, detail="Not Found")
        candidate = os.path.abspath(os.path.join(build_dir, full_path))
        if full_path and candidate.startswith(build_dir + os.sep) and os.path.isfile(candidate):
            return FileResponse(candidate)
        return FileResponse(index_html)

    log.info("Serving frontend build from %s", build_dir)
    return True


if settings.is_production:
    mount_frontend(app, settings.frontend_build_dir)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)
