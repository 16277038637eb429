"""Configuration management."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from .core.tessellation import TieBreak


class Settings(BaseSettings):
    """Application settings pulled from environment variables and .env."""

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Logging format (json or console)")

    # Diagram
    default_width: int = Field(default=400, gt=0, description="Default grid width")
    default_height: int = Field(default=400, gt=0, description="Default grid height")
    default_num_seeds: int = Field(default=100, ge=0, description="Default number of seeds")
    max_num_seeds: int = Field(default=10000, gt=0, description="Max allowed number of seeds")
    max_grid_width: int = Field(default=2000, gt=0, description="Max allowed grid width")
    max_grid_height: int = Field(default=2000, gt=0, description="Max allowed grid height")
    tie_break: TieBreak = Field(
        default=TieBreak.FIRST_SEED,
        description="Winner of equal-distance claims within one ring"
    )
    random_seed: Optional[str] = Field(
        default=None, description="Seed string for the default random source"
    )

    # Animation
    frame_delay_ms: int = Field(default=0, ge=0, description="Pause between frames in milliseconds")
    hide_iterations: bool = Field(
        default=False, description="Run each update to completion instead of one ring per frame"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
