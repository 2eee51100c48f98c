"""Configuration for the OpenAPI adapter."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SPEC_FILENAME = "openapi.yaml"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, env_file=".env", extra="ignore"
    )

    service_name: str = Field(default="openapi")

    openapi_file: str = Field(default=DEFAULT_SPEC_FILENAME)
    debug: bool = Field(default=False)
    http_headers_x_api_key: Optional[str] = Field(default=None)

    default_base_url: str = Field(default="http://localhost:8080")
    request_timeout_seconds: float = Field(default=30)

    adapter_transport: str = Field(default="stdio")
    adapter_host: str = Field(default="127.0.0.1")
    adapter_port: int = Field(default=8000)
    adapter_log_level: str = Field(default="INFO")

    def log_level(self) -> str:
        if self.debug:
            return "DEBUG"
        return self.adapter_log_level.upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
