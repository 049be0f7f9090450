"""Runtime settings.

Values come from ASPNET_AGENT_* environment variables or a local .env file.
CLI options override them per invocation.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_OPENAPI_PATHS = ["/openapi/v1.json", "/swagger/v1/swagger.json"]


class Settings(BaseSettings):
    """Settings for the service workflow."""

    # Used when no launchSettings.json is found
    default_url: str = "http://localhost:5000"

    probe_timeout: float = Field(
        2.0,
        gt=0,
        description="Timeout in seconds for the health-check request.",
    )
    startup_delay: float = Field(
        5.0,
        ge=0,
        description="Seconds to wait after starting the service before the single re-check.",
    )
    fetch_timeout: float = Field(10.0, gt=0, description="Timeout for downloading the OpenAPI document.")
    openapi_paths: list[str] = Field(default_factory=lambda: list(DEFAULT_OPENAPI_PATHS))
    prefer_scheme: str = "http"
    dotnet_executable: str = "dotnet"

    # Logging
    log_level: str = "WARNING"

    model_config = SettingsConfigDict(
        env_prefix="ASPNET_AGENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("prefer_scheme")
    def lower_scheme(cls, v: str) -> str:
        v = v.lower()
        if v not in ("http", "https"):
            raise ValueError("prefer_scheme must be 'http' or 'https'")
        return v

    @field_validator("log_level")
    def upper_level(cls, v: str) -> str:
        return v.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings()
