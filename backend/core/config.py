# backend/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional, List
import json
import tempfile


DEFAULT_QUESTIONS = [
    "Tell me about yourself.",
    "What are your greatest strengths?",
    "What do you consider to be your weaknesses?",
    "Why are you interested in working for our company?",
    "Where do you see yourself in 5 years?",
    "Why should we hire you?",
    "Describe a difficult work situation and how you overcame it.",
    "What is your greatest professional achievement?",
    "How do you handle stress and pressure?",
    "What are your salary expectations?",
    "Do you have any questions for me?",
]

# "you know" never matches a single token; kept so the list can be swapped wholesale
DEFAULT_FILLER_WORDS = ["um", "uh", "like", "you know", "so", "basically", "actually"]

DEFAULT_STOP_WORDS = [
    "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for", "with", "by",
    "about", "as", "into", "like", "through", "after", "over", "between", "out",
    "against", "during", "without", "before", "under", "around", "among", "is", "are",
    "was", "were", "be", "been", "being", "have", "has", "had", "do", "does", "did",
    "will", "would", "shall", "should", "may", "might", "must", "can", "could", "of",
    "that", "me", "my", "myself", "we", "our", "ours", "ourselves", "you", "your",
    "yours", "yourself", "yourselves", "he", "him", "his", "himself", "she", "her",
    "hers", "herself", "it", "its", "itself", "they", "them", "their", "theirs",
    "themselves",
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # ignore unknown keys instead of crashing
        populate_by_name=True,
    )

    # ---- Server
    port: int = Field(5001, alias="PORT")
    app_env: str = Field("development", alias="APP_ENV")
    frontend_build_dir: str = Field("../frontend/build", alias="FRONTEND_BUILD_DIR")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # ---- CORS raw (we'll parse)
    cors_origins_raw: str = Field("*", alias="CORS_ORIGINS")

    # ---- Uploads
    upload_dir: str = Field(default_factory=tempfile.gettempdir, alias="UPLOAD_DIR")
    max_upload_bytes: int = Field(10 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")
    ffmpeg_binary: str = Field("ffmpeg", alias="FFMPEG_BINARY")

    # ---- Speech-to-text (AssemblyAI)
    assemblyai_api_key: str = Field("", alias="ASSEMBLYAI_API_KEY")
    assemblyai_base_url: str = Field("https://api.assemblyai.com", alias="ASSEMBLYAI_BASE_URL")
    transcription_poll_attempts: int = Field(10, alias="TRANSCRIPTION_POLL_ATTEMPTS")
    transcription_poll_interval: float = Field(3.0, alias="TRANSCRIPTION_POLL_INTERVAL")

    # ---- Grammar (LanguageTool)
    languagetool_url: str = Field("https://api.languagetoolplus.com/v2/check", alias="LANGUAGETOOL_URL")

    # ---- Content (Mistral). Missing key => heuristic analysis, not an error
    mistral_api_key: Optional[str] = Field(None, alias="MISTRAL_API_KEY")
    mistral_url: str = Field("https://api.mistral.ai/v1/chat/completions", alias="MISTRAL_URL")
    mistral_model: str = Field("mistral-tiny", alias="MISTRAL_MODEL")

    http_timeout: float = Field(30.0, alias="HTTP_TIMEOUT")

    # ---- Analysis randomness (pitch/volume simulation, heuristic grammar picks)
    analysis_seed: Optional[int] = Field(None, alias="ANALYSIS_SEED")

    # ---- Corpora (JSON lists in env)
    questions: List[str] = Field(default_factory=lambda: list(DEFAULT_QUESTIONS), alias="INTERVIEW_QUESTIONS")
    filler_words: List[str] = Field(default_factory=lambda: list(DEFAULT_FILLER_WORDS), alias="FILLER_WORDS")
    stop_words: List[str] = Field(default_factory=lambda: list(DEFAULT_STOP_WORDS), alias="STOP_WORDS")

    # ---- Helpers / parsed properties
    @property
    def cors_origins(self) -> List[str]:
        s = (self.cors_origins_raw or "").strip()
        if not s:
            return ["*"]
        if s.startswith("["):
            try:
                arr = json.loads(s)
                if isinstance(arr, list):
                    return [str(x).strip() for x in arr if str(x).strip()]
            except ValueError:
                pass
        return [x.strip() for x in s.split(",") if x.strip()]

    @property
    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"


settings = Settings()
