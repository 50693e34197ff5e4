"""Session engine configuration via environment variables."""

from typing import Annotated

from pydantic import Field
from pydantic_settings import BaseSettings


class ArcadeSettings(BaseSettings):
    model_config = {"env_prefix": "ARCADE_"}

    session_timeout_seconds: int = Field(default=300, ge=1)  # idle time before a session expires
    sweep_interval_seconds: int = Field(default=300, ge=0)  # 0 disables the background sweeper
    log_dir: Annotated[str, Field(min_length=1)] | None = None
