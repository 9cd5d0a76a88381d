"""
Configuration module
Holds every setting of the app: server, storage, logging and the LLM provider
"""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings"""

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Storage
    database_url: str = "sqlite:///./data/mindful_reflections.db"

    # Logging
    log_level: str = "INFO"
    log_file: str = "logs/app.log"

    # LLM (any OpenAI-compatible endpoint, Gemini by default)
    llm_api_key: str = Field(default="", validation_alias=AliasChoices("llm_api_key", "api_key"))
    llm_api_base: str = "https://generativelanguage.googleapis.com/v1beta/openai"
    llm_model: str = "gemini-2.5-flash"
    llm_timeout: float = 60.0

    # Check-ins
    suggestion_batch_size: int = 3

    # App
    app_name: str = "Mindful Reflections"
    app_version: str = "1.0.0"
    debug: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """
    Return the settings instance
    lru_cache keeps a single instance per process
    """
    return Settings()


settings = get_settings()
