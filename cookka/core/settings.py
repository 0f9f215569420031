from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = Field(default="Cookka AI Gateway", alias="APP_NAME")
    environment: Literal["local", "dev", "staging", "prod"] = Field(
        default="local", alias="ENVIRONMENT"
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    )
    # Text chat and image/knowledge prompts run on separate model tiers.
    gemini_chat_model: str = Field(
        default="gemini-2.5-flash", alias="GEMINI_CHAT_MODEL"
    )
    gemini_vision_model: str = Field(
        default="gemini-2.5-flash", alias="GEMINI_VISION_MODEL"
    )
    gemini_recipe_models: list[str] = Field(
        default=["gemini-2.5-flash", "gemini-3-flash-preview", "gemini-2.5-pro"],
        alias="GEMINI_RECIPE_MODELS",
    )
    gemini_recipe_text_models: list[str] = Field(
        default=["gemini-2.5-flash", "gemini-2.5-pro"],
        alias="GEMINI_RECIPE_TEXT_MODELS",
    )
    gemini_chat_temperature: float = Field(
        default=0.7, alias="GEMINI_CHAT_TEMPERATURE"
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
