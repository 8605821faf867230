"""Configuration from .env file."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # "http" posts to the tutor backend, "openai" asks the model directly.
    EVALUATOR_BACKEND: str = "http"
    EVALUATOR_BASE_URL: str = "http://localhost:3001"
    EVALUATOR_TIMEOUT: float = 60.0

    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-5.2"

    CODE_PREVIEW_CHARS: int = 500  # Characters of code shown above the explanation box
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
