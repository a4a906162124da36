from pathlib import Path
from typing import List

from sqlalchemy.engine.url import make_url

from pydantic_settings import BaseSettings, SettingsConfigDict


REPO_ROOT = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(REPO_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    DEBUG: bool = True
    PROJECT_NAME: str = "Import Decision API"
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    DATABASE_URL: str = "postgresql+asyncpg://importeval:importeval@db:5432/importeval"
    DATABASE_URL_SYNC: str | None = None
    REDIS_URL: str = "redis://redis:6379/0"

    S3_ENDPOINT_URL: str = "http://minio:9000"
    S3_ACCESS_KEY: str = "minioadmin"
    S3_SECRET_KEY: str = "minioadmin"
    S3_BUCKET: str = "vehicle-photos"

    UPLOAD_MAX_SIZE_MB: int = 15

    # 1 EUR = EUR_AED_RATE AED, used when no rate is stored in the settings table
    EUR_AED_RATE: float = 4.0

    DESCRIBER_API_URL: str = "https://api.openai.com/v1/chat/completions"
    DESCRIBER_API_KEY: str = ""
    DESCRIBER_MODELS: List[str] = ["gpt-4.1", "gpt-4o"]
    DESCRIBER_TIMEOUT_SECONDS: int = 60
    DESCRIBER_MAX_IMAGES: int = 10
    DESCRIBER_MAX_RETRIES: int = 3
    DESCRIBER_BACKOFF_SECONDS: float = 5.0

    ANALYSIS_STUCK_AFTER_SECONDS: int = 600

    ECONOMIC_COST_BANDS_AED: List[float] = [6000.0, 20000.0]
    ECONOMIC_LABOR_BANDS_HOURS: List[float] = [10.0, 25.0]

    def resolved_sync_db_url(self) -> str:
        if self.DATABASE_URL_SYNC:
            return self.DATABASE_URL_SYNC
        url = make_url(self.DATABASE_URL)
        if url.drivername.endswith("+asyncpg"):
            url = url.set(drivername=url.drivername.replace("+asyncpg", ""))
        return url.render_as_string(hide_password=False)


settings = Settings()
