"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "campus_link"

    # DeepSeek AI (OpenAI-compatible) - content moderation only
    deepseek_api_key: str = ""
    deepseek_base_url: str = "https://api.deepseek.com/v1"
    moderation_model: str = "deepseek-chat"

    # JWT Auth (tokens are issued by the identity provider)
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 1440

    # Moderation policy per call site: "blocking" or "advisory"
    profile_moderation_policy: str = "blocking"
    request_moderation_policy: str = "blocking"
    chat_moderation_policy: str = "advisory"

    # Mentorship
    mentor_search_limit: int = 20
    profile_cache_ttl_seconds: float = 60.0
    chat_active_window_hours: int = 24

    # App
    debug: bool = True
    log_level: str = "INFO"

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
