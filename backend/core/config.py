# backend/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional, List
import json
import os

DEFAULT_SECRET = "dev-secret-change-me"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # ignore unknown keys instead of crashing
        populate_by_name=True,
    )

    environment: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # ---- Auth / JWT
    secret_key: str = Field(DEFAULT_SECRET, alias="JWT_SECRET")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60 * 24 * 7, alias="ACCESS_TOKEN_EXPIRE_MINUTES")
    test_plaintext_passwords: bool = Field(False, alias="TEST_PLAINTEXT_PASSWORDS")

    # ---- DB (accept either)
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")
    db_url_compat: Optional[str] = Field(default=None, alias="DB_URL")

    # ---- CORS raw (we'll parse)
    cors_origins_raw: str = Field(
        "http://localhost:5173,http://127.0.0.1:5173",
        alias="CORS_ORIGINS",
    )

    # ---- AI text service
    ai_provider: str = Field("stub", alias="AI_PROVIDER")  # stub | openai | ollama
    openai_api_key: str = Field("", alias="OPENAI_API_KEY")
    openai_model: str = Field("gpt-4o", alias="OPENAI_MODEL")
    openai_base_url: str = Field("https://api.openai.com/v1", alias="OPENAI_BASE_URL")
    ollama_url: str = Field("http://127.0.0.1:11434", alias="OLLAMA_URL")
    ollama_model: str = Field("llama3.1", alias="OLLAMA_MODEL")
    llm_timeout_seconds: float = Field(60.0, alias="LLM_TIMEOUT_SECONDS")

    # ---- Speech
    stt_provider: str = Field("local", alias="STT_PROVIDER")  # local | openai | none
    whisper_model: str = Field("base", alias="WHISPER_MODEL")
    openai_stt_model: str = Field("whisper-1", alias="OPENAI_STT_MODEL")
    stt_timeout_seconds: float = Field(120.0, alias="STT_TIMEOUT_SECONDS")

    tts_provider: str = Field("none", alias="TTS_PROVIDER")  # none | local | elevenlabs
    elevenlabs_api_key: str = Field("", alias="ELEVENLABS_API_KEY")
    elevenlabs_voice_id: str = Field("pNInz6obpgDQGcFmaJgB", alias="ELEVENLABS_VOICE_ID")
    elevenlabs_model_id: str = Field("eleven_multilingual_v2", alias="ELEVENLABS_MODEL_ID")
    tts_timeout_seconds: float = Field(60.0, alias="TTS_TIMEOUT_SECONDS")

    # ---- Files
    upload_dir: str = Field("./uploads", alias="UPLOAD_DIR")
    max_resume_bytes: int = Field(10 * 1024 * 1024, alias="MAX_RESUME_BYTES")
    max_audio_bytes: int = Field(25 * 1024 * 1024, alias="MAX_AUDIO_BYTES")

    # ---- Rate limiting (HTTP layer)
    rate_limit_requests: int = Field(100, alias="RATE_LIMIT_REQUESTS")
    rate_limit_window_seconds: float = Field(900.0, alias="RATE_LIMIT_WINDOW_SECONDS")
    rate_limit_max_clients: int = Field(10_000, alias="RATE_LIMIT_MAX_CLIENTS")

    # ---- Helpers / parsed properties
    @property
    def cors_origins(self) -> List[str]:
        s = (self.cors_origins_raw or "").strip()
        if not s:
            return ["http://localhost:5173", "http://127.0.0.1:5173"]
        if s.startswith("["):
            try:
                arr = json.loads(s)
                if isinstance(arr, list):
                    return [str(x).strip() for x in arr if str(x).strip()]
            except ValueError:
                pass
        return [x.strip() for x in s.strip("[]").split(",") if x.strip()]

    @property
    def database_url_effective(self) -> str:
        url = self.database_url or self.db_url_compat or "sqlite:///./interview.db"
        # Heroku/Render hand out postgres://, SQLAlchemy wants postgresql://
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        return url

    @property
    def DATABASE_URL(self) -> str:
        return self.database_url_effective

    @property
    def resume_dir(self) -> str:
        return os.path.join(self.upload_dir, "resumes")

    @property
    def audio_dir(self) -> str:
        return os.path.join(self.upload_dir, "audio")


settings = Settings()


class ConfigError(RuntimeError):
    pass


def check_environment(s: Settings) -> List[str]:
    """
    Startup sanity check. Raises ConfigError for settings that must not reach
    production; returns warnings for everything that merely degrades features.
    """
    errors: List[str] = []
    warnings: List[str] = []
    production = s.environment.lower() == "production"

    if production and s.ai_provider == "stub":
        errors.append("AI_PROVIDER=stub is not allowed in production")
    if production and s.secret_key == DEFAULT_SECRET:
        errors.append("JWT_SECRET must be set to a secure value in production")

    needs_openai = s.ai_provider == "openai" or s.stt_provider == "openai"
    if needs_openai and not s.openai_api_key:
        msg = "OPENAI_API_KEY is not set - OpenAI features will be disabled"
        (errors if production else warnings).append(msg)
    if s.tts_provider == "elevenlabs" and not s.elevenlabs_api_key:
        msg = "ELEVENLABS_API_KEY is not set - voice features will be disabled"
        (errors if production else warnings).append(msg)

    if not production:
        if s.ai_provider == "stub":
            warnings.append("AI_PROVIDER=stub - answers are scored by offline heuristics")
        if s.secret_key == DEFAULT_SECRET:
            warnings.append("JWT_SECRET is the built-in default")

    if errors:
        raise ConfigError("; ".join(errors))
    return warnings
