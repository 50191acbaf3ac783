from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # ─────────── APP ───────────
    app_name: str = "HAPA - Haute Autorité de la Presse et de l'Audiovisuel"
    environment: str = "dev"
    log_level: str = "INFO"
    site_url: str = "http://localhost:8000"
    default_locale: str = "fr"

    # ─────────── API ───────────
    api_prefix: str = "/api"
    request_id_header: str = "X-Request-Id"

    # ─────────── DATABASE ───────────
    database_url: str

    # ─────────── JWT / AUTH ───────────
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_access_token_minutes: int = 720  # 12 hours
    preview_secret: Optional[str] = None
    preview_cookie_name: str = "hapa_preview"

    # ─────────── STORAGE ───────────
    storage_backend: str = "local"  # "local" | "r2"
    local_media_path: str = "./media"

    r2_account_id: Optional[str] = None
    r2_access_key_id: Optional[str] = None
    r2_secret_access_key: Optional[str] = None
    r2_bucket_name: Optional[str] = None
    r2_public_url: Optional[str] = None

    # ─────────── EMAIL ───────────
    resend_api_key: Optional[str] = None
    email_from: str = "support@hapa.mr"
    admin_notification_email: str = "admin@hapa.mr"

    # ─────────── CACHES / TIMERS ───────────
    stats_cache_seconds: int = 300
    rate_limit_purge_seconds: int = 60

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def r2_configured(self) -> bool:
        return bool(
            self.r2_account_id
            and self.r2_access_key_id
            and self.r2_secret_access_key
            and self.r2_bucket_name
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
