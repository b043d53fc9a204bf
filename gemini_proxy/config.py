from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the Gemini proxy."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Checked per request, not at startup.
    gemini_api_key: str | None = Field(default=None, alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-1.5-flash-latest", alias="GEMINI_MODEL")

    temperature: float = Field(default=0.9, alias="GEMINI_TEMPERATURE")
    top_k: int = Field(default=1, alias="GEMINI_TOP_K")
    top_p: float = Field(default=1.0, alias="GEMINI_TOP_P")
    max_output_tokens: int = Field(default=8192, alias="GEMINI_MAX_OUTPUT_TOKENS")
    safety_threshold: str = Field(
        default="BLOCK_MEDIUM_AND_ABOVE", alias="GEMINI_SAFETY_THRESHOLD"
    )

    # Comma-separated; empty means any origin.
    allowed_origins_raw: str = Field(default="", alias="ALLOWED_ORIGINS")

    service_name: str = Field(default="TeacherBot Gemini Proxy", alias="SERVICE_NAME")
    service_version: str = Field(default="1.0.0", alias="SERVICE_VERSION")

    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8080, alias="APP_PORT")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @property
    def allowed_origins(self) -> list[str]:
        return [
            origin.strip()
            for origin in self.allowed_origins_raw.split(",")
            if origin.strip()
        ]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
