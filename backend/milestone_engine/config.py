import os
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: Optional[str] = Field(None, alias="MILESTONE_DATABASE_URL")
    database_pool_size: int = Field(10, alias="MILESTONE_DATABASE_POOL_SIZE")
    database_max_overflow: int = Field(10, alias="MILESTONE_DATABASE_MAX_OVERFLOW")
    database_echo: bool = Field(False, alias="MILESTONE_DATABASE_ECHO")
    store_max_retries: int = Field(3, ge=0, alias="MILESTONE_STORE_MAX_RETRIES")
    store_retry_backoff: float = Field(0.05, ge=0, alias="MILESTONE_STORE_RETRY_BACKOFF")
    notifier: Literal["smtp", "log"] = Field("log", alias="MILESTONE_NOTIFIER")
    smtp_host: Optional[str] = Field(None, alias="MILESTONE_SMTP_HOST")
    smtp_port: int = Field(587, alias="MILESTONE_SMTP_PORT")
    smtp_username: Optional[str] = Field(None, alias="MILESTONE_SMTP_USERNAME")
    smtp_password: Optional[str] = Field(None, alias="MILESTONE_SMTP_PASSWORD")
    smtp_from: Optional[str] = Field(None, alias="MILESTONE_SMTP_FROM")
    smtp_from_name: str = Field("Wysa AI Career Coach", alias="MILESTONE_SMTP_FROM_NAME")
    smtp_use_tls: bool = Field(True, alias="MILESTONE_SMTP_USE_TLS")
    smtp_timeout: float = Field(10.0, gt=0, alias="MILESTONE_SMTP_TIMEOUT")
    frontend_url: str = Field("http://localhost:3000", alias="MILESTONE_FRONTEND_URL")
    dispatch_workers: int = Field(1, ge=1, alias="MILESTONE_DISPATCH_WORKERS")

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[arg-type]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid milestone engine configuration: {exc}") from exc
