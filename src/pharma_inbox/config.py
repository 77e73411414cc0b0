from __future__ import annotations

from typing import Literal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    API_URL: str = "http://localhost:5001/api"
    RELAY_URL: str = "http://localhost:5001"

    API_TOKEN: str = ""
    USER_ID: str | None = None

    HTTP_TIMEOUT: float = 10.0

    RELAY_RECONNECT: bool = True
    RELAY_RECONNECT_ATTEMPTS: int = 5
    RELAY_RECONNECT_DELAY: float = 1.0

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    model_config = ConfigDict(
        env_file=".env",
        env_prefix="PHARMA_",
        extra="ignore",
    )


settings = Settings()
