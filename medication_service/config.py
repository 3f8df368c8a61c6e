"""
Centralized configuration for the Medication Service.

Settings are loaded from environment variables and an optional .env file
through Pydantic's BaseSettings, giving one type-safe source of truth.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # --- Core API Settings ---
    PROJECT_NAME: str = "Medication Schedule Service"
    API_PREFIX: str = "/api"

    # --- Database Settings ---
    DATABASE_URL: str = "sqlite:///./medication_service.db"

    # --- Scheduling Rules ---
    GRACE_MARGIN_DAYS: int = 1  # Tolerance around a regimen's start/end date when marking doses
    REFILL_WARNING_DAYS: int = 2
    DEFAULT_UPCOMING_HOURS: int = 4

    # --- Background Jobs ---
    ENABLE_SCHEDULER: bool = True
    ORPHAN_CLEANUP_HOUR: int = 2
    ORPHAN_CLEANUP_MINUTE: int = 0

    class Config:
        """Loads settings from the specified .env file."""
        env_file = ".env"
        env_file_encoding = 'utf-8'


# Create a single, globally accessible settings instance
settings = Settings()
