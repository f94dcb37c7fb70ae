"""Configuration schema models using Pydantic."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class GlobalConfig(BaseModel):
    """User preferences stored in ``config.yaml``."""

    version: str = "1"
    default_output_dir: Path = Field(default=Path("."))
    log_level: LogLevel = "WARNING"
    embed_metadata: bool = True
    request_timeout_seconds: float = Field(default=30.0, gt=0)
