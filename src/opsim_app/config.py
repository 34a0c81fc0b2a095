"""Configuration management using Pydantic settings."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="OPSIM_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "OPSIM"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["*"]

    # Simulation engine
    simulation_enabled: bool = True
    tick_interval_ms: int = 1000
    simulation_seed: Optional[int] = None   # fixed seed => reproducible session
    autostart: bool = False                 # begin unpaused instead of waiting for the player


settings = Settings()
