"""
Application configuration using pydantic-settings.
All config is validated at startup - fail fast if anything is missing.
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    app_env: str = "development"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_base_url: str = "http://localhost:8000"
    log_level: str = "INFO"
    allowed_origins: str = ""  # Comma-separated CORS origins for the dashboard

    # Database
    database_url: str
    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Auth provider - tokens are minted externally, we only verify them
    auth_jwt_secret: str = ""
    auth_jwt_audience: str = ""

    # Sentry
    sentry_dsn: str = ""

    # Ingestion limits
    rate_limit_max_requests: int = 60
    rate_limit_window_seconds: int = 60
    rate_limit_max_keys: int = 0  # 0 = never evict (memory grows with distinct endpoints)
    max_payload_bytes: int = 1024 * 1024

    # Report lookup backend errors as 503 instead of folding them into 404
    separate_backend_outage: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def cors_origins(self) -> list[str]:
        origins = [o.strip() for o in self.allowed_origins.split(",") if o.strip()]
        if self.app_env == "development":
            origins.extend(["http://localhost:3000", "http://localhost:5173"])
        return origins


@lru_cache()
def get_settings() -> Settings:
    return Settings()
