"""Application settings."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Claimflow settings, overridable through CLAIMFLOW_* environment variables."""

    # Application Settings
    app_name: str = "Claimflow - AI-assisted auto claim intake"
    app_version: str = "1.0.0"
    log_level: str = "INFO"

    # Ollama Settings
    ollama_host: str = "http://localhost:11434"
    vision_model: str = "llama3.2-vision"
    text_model: str = "llama3"

    # Intake Settings
    default_shop_location: str = "Current Location"

    model_config = SettingsConfigDict(
        env_prefix="CLAIMFLOW_",
        env_file=str(Path(__file__).resolve().parent.parent / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
