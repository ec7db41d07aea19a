"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or .env file."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    app_name: str = "Controle de Frota"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"  # Bind to all interfaces for external access
    port: int = 8000
    allowed_origins: str = "*"  # Comma-separated origins, or "*" for all
    display_timezone: str = "America/Sao_Paulo"

    # Database (in-memory by default: submissions live only as long as the process)
    database_url: str = "sqlite://"

    # Checklist submissions
    max_photo_bytes: int = 5 * 1024 * 1024

    # Overdue departures (0 disables the flag and the monitor warnings)
    overdue_after_hours: int = 12
    overdue_check_interval_minutes: int = 15


settings = Settings()
