import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _resolve_database_url() -> str:
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url

    environment = os.getenv("ENVIRONMENT", "").strip().lower()
    if environment in {"development", "test"}:
        return "sqlite:///./family_records.db"

    raise ValueError(
        "DATABASE_URL is not set. Set DATABASE_URL for non-development "
        "environments or set ENVIRONMENT=development for local defaults."
    )


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    environment: str = os.getenv("ENVIRONMENT", "production").strip().lower()
    database_url: str = _resolve_database_url()
    db_pool_size: int = int(os.getenv("DB_POOL_SIZE", "5"))
    db_max_overflow: int = int(os.getenv("DB_MAX_OVERFLOW", "10"))
    db_pool_timeout: int = int(os.getenv("DB_POOL_TIMEOUT", "30"))
    db_pool_recycle: int = int(os.getenv("DB_POOL_RECYCLE", "1800"))

    # Document storage (local public disk unless S3 is configured)
    storage_root: str = os.getenv("STORAGE_ROOT", "storage/public")
    storage_url_prefix: str = os.getenv("STORAGE_URL_PREFIX", "/storage")
    document_max_size_bytes: int = int(
        os.getenv("DOCUMENT_MAX_SIZE_BYTES", str(10 * 1024 * 1024))
    )  # 10MB
    document_allowed_extensions: str = os.getenv(
        "DOCUMENT_ALLOWED_EXTENSIONS", "pdf,jpg,jpeg,png,gif,webp"
    )

    # S3 / MinIO settings
    s3_endpoint_url: str = os.getenv("S3_ENDPOINT_URL", "")
    s3_access_key: str = os.getenv("S3_ACCESS_KEY", "")
    s3_secret_key: str = os.getenv("S3_SECRET_KEY", "")
    s3_bucket_name: str = os.getenv("S3_BUCKET_NAME", "family-documents")
    s3_region: str = os.getenv("S3_REGION", "us-east-1")
    s3_presigned_url_expiry: int = int(os.getenv("S3_PRESIGNED_URL_EXPIRY", "3600"))

    # Push delivery
    push_enabled: bool = _env_bool("PUSH_ENABLED", "true")
    push_api_url: str = os.getenv(
        "PUSH_API_URL", "https://exp.host/--/api/v2/push/send"
    )
    push_access_token: str = os.getenv("PUSH_ACCESS_TOKEN", "")
    push_timeout_seconds: float = float(os.getenv("PUSH_TIMEOUT_SECONDS", "15"))

    # Celery / scheduler
    celery_broker_url: str = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    celery_result_backend: str = os.getenv(
        "CELERY_RESULT_BACKEND", "redis://localhost:6379/1"
    )
    celery_task_always_eager: bool = _env_bool("CELERY_TASK_ALWAYS_EAGER", "false")
    timezone: str = os.getenv("TIMEZONE", "Asia/Kuala_Lumpur")
    birthday_today_at: str = os.getenv("BIRTHDAY_TODAY_AT", "07:00")
    birthday_tomorrow_at: str = os.getenv("BIRTHDAY_TOMORROW_AT", "08:00")

    # Auth
    token_ttl_days: int = int(os.getenv("TOKEN_TTL_DAYS", "30"))
    session_cookie_name: str = os.getenv("SESSION_COOKIE_NAME", "family_session")
    session_cookie_secure: bool = _env_bool("SESSION_COOKIE_SECURE", "false")

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_format: str = os.getenv("LOG_FORMAT", "json")

    # Branding
    brand_name: str = os.getenv("BRAND_NAME", "Family Records")


settings = Settings()
