# config.py
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Project-wide settings (Pydantic V2).
    Values are loaded from the environment or a .env file, falling back to the defaults below.
    """

    # Project Info
    PROJECT_NAME: str = "Shock_Severity"
    VERSION: str = "1.0.0"

    # Logging
    LOG_DIR: str = "./logs"
    LOG_LEVEL: str = "INFO"

    # SRS Settings
    STARTING_FREQUENCY_HZ: float = 10.0
    QUALITY_FACTOR: float = 10.0
    POINTS_PER_OCTAVE: int = 12

    # Engine Settings
    FILTER_BACKEND: Literal["scipy", "batched"] = "scipy"
    MAX_WORKERS: int = 1

    # Severity Settings
    SSI_ORDER: int = 1
    OUT_OF_RANGE_POLICY: Literal["extrapolate", "raise"] = "extrapolate"

    # .env loading
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


# Singleton instance
settings = Settings()
