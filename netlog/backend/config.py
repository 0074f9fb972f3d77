"""
backend/config.py

Application configuration via Pydantic Settings.
All values can be overridden with environment variables or a .env file.

Quick start — create a .env file in your project root:
    PORT=3000
    DB_PATH=/var/lib/netlog/netlog.db
    CAPTURE_COMMAND=tcpdump -l -an -i eth0 portrange 1-65535
"""

from __future__ import annotations

from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Capture: the command must write one packet per line to stdout
    CAPTURE_COMMAND: Annotated[list[str], NoDecode] = [
        "tcpdump", "-l", "-an", "portrange", "1-65535",
    ]

    # Storage
    DB_PATH: str = "netlog.db"

    # API
    API_HOST: str = "0.0.0.0"
    PORT: int = 3000
    CORS_ORIGINS: Annotated[list[str], NoDecode] = ["*"]

    # Logging
    LOG_LEVEL: str = "INFO"
    METRICS_LOG_INTERVAL: float = 60.0

    @field_validator("CAPTURE_COMMAND", "CORS_ORIGINS", mode="before")
    @classmethod
    def parse_list(cls, v):
        if isinstance(v, str):
            import json as _json
            v = v.strip()
            if v.startswith("["):
                return _json.loads(v)
            return v.split()
        return v


settings = Settings()
