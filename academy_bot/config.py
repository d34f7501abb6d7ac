"""Configuration settings using pydantic-settings."""
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Telegram Bot
    BOT_TOKEN: str = Field(default="", description="Telegram Bot API token")

    # Gemini API
    GEMINI_API_KEY: Optional[str] = Field(
        default=None,
        description="Google Generative Language API key"
    )
    GEMINI_MODEL: str = Field(
        default="gemini-2.0-flash",
        description="Model used for quiz generation"
    )
    GEMINI_API_URL: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent",
        description="generateContent endpoint template, {model} is substituted"
    )
    GEMINI_TIMEOUT: int = Field(default=60, description="Generation request timeout in seconds")

    # Quiz
    QUESTION_COUNT: int = Field(default=5, description="Questions requested per quiz")

    # Logging
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    class Config:
        """Pydantic config."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


# Global settings instance
settings = Settings()
