from __future__ import annotations
import os
from pydantic import BaseModel


def _int_list(raw: str) -> list[int]:
    return [int(x) for x in raw.split(",") if x.strip()]


class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "banfoo-api")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "Z+O Camp Banfoo")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    database_url: str = os.getenv("DATABASE_URL", "postgresql+asyncpg://postgres:postgres@db:5432/banfoo_dev")

    # Realtime fan-out: empty => in-process hub (single worker)
    event_bus_url: str = os.getenv("EVENT_BUS_URL", "")
    event_bus_channel: str = os.getenv("EVENT_BUS_CHANNEL", "banfoo:events")
    # Seconds before naturalDisaster / worldPeace / thief flip back to "false"; 0 disables
    event_pulse_seconds: float = float(os.getenv("EVENT_PULSE_SECONDS", "10"))

    # Object storage for uploaded photos
    s3_endpoint: str = os.getenv("S3_ENDPOINT", "http://minio:9000")
    s3_public_url: str = os.getenv("S3_PUBLIC_URL", os.getenv("S3_ENDPOINT", "http://minio:9000"))
    s3_access_key: str = os.getenv("S3_ACCESS_KEY", "minioadmin")
    s3_secret_key: str = os.getenv("S3_SECRET_KEY", "minioadmin")
    s3_bucket_uploads: str = os.getenv("S3_BUCKET_UPLOADS", "zo-banfoo-25")
    max_upload_files: int = int(os.getenv("MAX_UPLOAD_FILES", "3"))
    max_upload_bytes: int = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

    # Game rules
    code_prefix: str = os.getenv("CODE_PREFIX", "zocampbanfoo")
    contains_match_question_ids: list[int] = _int_list(os.getenv("CONTAINS_MATCH_QUESTION_IDS", "30"))
    allow_repeat_completions: bool = os.getenv("ALLOW_REPEAT_COMPLETIONS", "1") == "1"
    disaster_aid_target: int = int(os.getenv("DISASTER_AID_TARGET", "0"))  # 0 = no target

    # Admin auth
    admin_password: str = os.getenv("ADMIN_PASSWORD", "banfoo-admin")
    admin_password_hash: str = os.getenv("ADMIN_PASSWORD_HASH", "")
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret-change-me")
    access_ttl_min: int = int(os.getenv("ACCESS_TTL_MIN", "720"))
    refresh_ttl_min: int = int(os.getenv("REFRESH_TTL_MIN", "10080"))  # 7d

settings = Settings()
