"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or .env file."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    app_name: str = "Gatekeeper"
    debug: bool = False
    log_dir: str = "~/.logs/gatekeeper"

    # Server
    host: str = "0.0.0.0"  # Bind to all interfaces so gate devices can reach it
    port: int = 8000
    allowed_origins: str = "*"  # Comma-separated origins, or "*" for all

    # Database
    database_url: str = "sqlite:///./gatekeeper.db"
    database_busy_timeout: float = 15.0  # Seconds a writer waits for the SQLite lock

    # Tokens
    member_token_random_bytes: int = 8
    token_issue_attempts: int = 5

    # Ledger queries
    ledger_default_page_size: int = 20
    ledger_max_page_size: int = 100


settings = Settings()
