from typing import Optional

from pydantic import AliasChoices, Field, PositiveInt, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # ===== Server =====
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: PositiveInt = Field(default=8000, alias="API_PORT")

    # ===== Gemini =====
    # Read once at startup; a missing key only fails at analysis time.
    gemini_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "API_KEY"),
    )
    gemini_model: str = Field(default="gemini-2.5-pro", alias="GEMINI_MODEL")

    # ===== Analysis input =====
    max_question_chars: PositiveInt = Field(default=2000, alias="MAX_QUESTION_CHARS")

    # ===== Runtime =====
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Pydantic Settings v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Blank env values (API_KEY=) count as "not configured"
    @field_validator("gemini_api_key", mode="before")
    @classmethod
    def _blank_key(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


settings = Settings()
