"""Application configuration loaded from environment variables."""
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_prefix="VITALS_", env_file=".env", extra="ignore"
    )

    # API configuration
    api_host: str = "127.0.0.1"
    api_port: int = 8083

    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Monitoring
    default_user_id: str = "current-user"
    check_interval_seconds: float = 60.0
    critical_prompt_cooldown_seconds: float = 300.0
    alert_countdown_seconds: int = 30
    emergency_number: str = "120"

    # Start periodic mock checks for the default user on startup
    simulate_vitals: bool = False

    alert_history_size: int = 100
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
