from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = "development"
    log_level: str = "INFO"
    database_url: str = "sqlite:///./support_bot.db"
    session_store: Literal["memory", "database"] = "database"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:8000,http://127.0.0.1:8000"

    openai_api_key: str | None = None
    default_model: str = "gpt-4.1-mini"
    llm_timeout_seconds: float = 20.0
    llm_max_retries: int = 2
    escalation_history_turns: int = 10

    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    escalation_email_to: str = "support@company.com"
    escalation_email_from: str = "bot@company.com"

    rate_limit_enabled: bool = True
    rate_limit_requests_per_minute: int = 300
    rate_limit_exempt_paths: str = "/,/health,/docs,/openapi.json"

    @field_validator("session_store", mode="before")
    @classmethod
    def normalize_session_store(cls, value: str) -> str:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @property
    def cors_origins_list(self) -> list[str]:
        if self.app_env == "production":
            return [item.strip() for item in self.cors_origins.split(",") if item.strip()]
        dev_defaults = ["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:8000", "http://127.0.0.1:8000"]
        custom = [item.strip() for item in self.cors_origins.split(",") if item.strip()]
        return sorted(set(dev_defaults + custom))

    @property
    def rate_limit_exempt_paths_list(self) -> list[str]:
        return [item.strip() for item in self.rate_limit_exempt_paths.split(",") if item.strip()]

    def validate_production_safety(self) -> None:
        if self.app_env != "production":
            return
        if "*" in self.cors_origins:
            raise ValueError("Unsafe CORS wildcard for production")
        if self.session_store == "memory":
            raise ValueError("In-memory session store is not durable; use the database store in production")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
