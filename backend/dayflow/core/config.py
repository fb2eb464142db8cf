"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Dayflow Planner"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "sqlite:///./dayflow.db"
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "dayflow"
    scheduler_enabled: bool = False
    scheduler_timezone: str = "UTC"
    refresh_job_hour: int = 0
    refresh_job_minute: int = 5
    jobs_run_on_startup: bool = False
    notifications_enabled: bool = True
    notifications_provider: str = "noop"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
