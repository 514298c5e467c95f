"""Environment-driven settings for the game server."""

from __future__ import annotations

import os
from typing import List, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from lobby.manager import QUEUE_TIMEOUT, ROOM_IDLE_TIMEOUT


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(8000, ge=1, le=65535)
    log_level: str = "info"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    sweep_interval: float = Field(60.0, gt=0, description="Seconds between idle sweeps.")
    room_idle_timeout: float = Field(ROOM_IDLE_TIMEOUT, gt=0)
    queue_timeout: float = Field(QUEUE_TIMEOUT, gt=0)

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        value = value.lower()
        if value not in {"critical", "error", "warning", "info", "debug"}:
            raise ValueError(f"Unknown log level: {value!r}")
        return value

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> object:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerSettings":
        """Build settings from ``HOST``, ``PORT``, ``LOG_LEVEL`` and friends."""
        if environ is None:
            environ = os.environ
        names = {
            "host": "HOST",
            "port": "PORT",
            "log_level": "LOG_LEVEL",
            "cors_origins": "CORS_ORIGINS",
            "sweep_interval": "SWEEP_INTERVAL",
            "room_idle_timeout": "ROOM_IDLE_TIMEOUT",
            "queue_timeout": "QUEUE_TIMEOUT",
        }
        values = {field: environ[var] for field, var in names.items() if var in environ}
        return cls(**values)
