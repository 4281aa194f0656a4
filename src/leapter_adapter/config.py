"""Configuration for the Leapter adapter."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional, Set

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import DEFAULT_SERVER, LeapterCredentials


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    service_name: str = Field(default="leapter-adapter")

    leapter_server: str = Field(default=DEFAULT_SERVER)
    leapter_api_key: str = Field(default="")
    leapter_timeout_seconds: float = Field(default=30)
    leapter_verify_ssl: bool = Field(default=True)

    leapter_project_id: Optional[str] = Field(default=None)
    leapter_blueprint_filter: Optional[str] = Field(default=None)
    leapter_tool_description_prefix: str = Field(default="")

    adapter_transport: str = Field(default="streamable-http")
    adapter_host: str = Field(default="0.0.0.0")
    adapter_port: int = Field(default=8000)
    adapter_auth_token: Optional[str] = Field(default=None)

    adapter_log_level: str = Field(default="INFO")

    def credentials(self) -> LeapterCredentials:
        return LeapterCredentials(api_key=self.leapter_api_key, server=self.leapter_server)

    def blueprint_filter(self) -> Set[str]:
        if not self.leapter_blueprint_filter:
            return set()
        return {item.strip() for item in self.leapter_blueprint_filter.split(",") if item.strip()}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
