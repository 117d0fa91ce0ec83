"""
Tracker - Application configuration.

Centralized configuration using Pydantic Settings for environment variable management.

Environment Variables:
    All settings can be overridden via environment variables with TRACKER_ prefix.

    AI Settings:
        TRACKER_AI_ENABLED=true               - Toggle the Analyze feature
        TRACKER_DEEPINFRA_API_KEY=...         - DeepInfra API key from deepinfra.com/dash
        TRACKER_DEEPINFRA_BASE_URL=...        - OpenAI-compatible base URL
        TRACKER_AI_MODEL=...                  - Model to use (e.g., mistralai/Mistral-7B-Instruct-v0.1)

    Database Settings:
        TRACKER_DATABASE_URL=sqlite:///./data/tracker.db
"""
from pydantic_settings import BaseSettings
from typing import Optional


DEFAULT_SYSTEM_PROMPT = (
    "do summary less than 50 words for status with !simple, !warm, "
    "!supportive language with greetings.use emoji"
)


class AISettings(BaseSettings):
    """
    Summarization API configuration settings.

    Any OpenAI-compatible chat-completions provider works; DeepInfra is the default.
    Without an API key the Analyze endpoints stay up but report that the
    feature is not configured.
    """
    ai_enabled: bool = True
    deepinfra_api_key: Optional[str] = None
    deepinfra_base_url: str = "https://api.deepinfra.com/v1/openai"
    ai_model: str = "mistralai/Mistral-7B-Instruct-v0.1"
    ai_temperature: float = 0.3
    ai_timeout: float = 60.0
    ai_system_prompt: str = DEFAULT_SYSTEM_PROMPT

    class Config:
        env_prefix = "TRACKER_"
        env_file = ".env"
        extra = "ignore"


class Settings(BaseSettings):
    """Combined application settings."""
    ai: AISettings = AISettings()

    # CORS allowed origins (comma-separated, e.g. "http://localhost:3000,https://myapp.com")
    allowed_origins: str = "*"

    # Database
    database_url: str = "sqlite:///./data/tracker.db"

    # Display color assigned to skills that never had one
    default_skill_color: str = "#4A90E2"

    class Config:
        env_prefix = "TRACKER_"
        env_file = ".env"
        extra = "ignore"


# Global settings instance
settings = Settings()
