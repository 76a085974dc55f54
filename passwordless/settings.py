from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_env: str = "dev"
    log_level: str = "INFO"
    base_url: str = "http://localhost:8080"
    site_name: str = "Passwordless"

    # Infra
    database_url: str = "postgresql://app:app@db:5432/app"
    session_table: str = "session"
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10
    db_pool_timeout_seconds: float = 5.0
    db_connect_timeout_seconds: int = 3

    # Security / policies
    bcrypt_rounds: int = 12
    token_ttl_seconds: int = 30 * 60
    debug_token_length: int = 4
    email_token_length: int = 10

    # Mail: SMTP submission, or an HTTP relay when no SMTP host is set
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_from: str = "no-reply@localhost"
    smtp_starttls: bool = True
    smtp_timeout_seconds: float = 10.0
    mail_relay_url: Optional[str] = None
    mail_relay_api_key: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PWL_",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
