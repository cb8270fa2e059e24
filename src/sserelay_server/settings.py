from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SSERELAY_", extra="ignore")

    bind: str = Field(default="127.0.0.1", description="The address on which the server should listen.")
    port: int = Field(default=8787, description="The port on which the server should listen.")
    allow_all_origins: bool = Field(
        default=False,
        description="Allow all origins to access the server resources.",
    )
    retry_ms: int = Field(default=3000, description="Reconnection delay advertised to subscribers (ms).")
    log_level: str = Field(default="info", description="uvicorn log level.")
