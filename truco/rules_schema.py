"""Validation schema for per-room game configuration."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class GameConfig(BaseModel):
    """Closed pair of options chosen when a room is created."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    max_points: Literal[15, 30] = Field(
        15,
        alias="maxPoints",
        description="Score a player must reach to win the match.",
    )
    with_flor: bool = Field(
        True,
        alias="withFlor",
        description="Whether the flor phase is played at the start of every hand.",
    )


DEFAULT_CONFIG = GameConfig()
