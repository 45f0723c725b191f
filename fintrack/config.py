"""Configuration management for fintrack."""

import logging
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # LLM Configuration
    gemini_api_key: str = ""
    llm_model: str = "gemini/gemini-1.5-flash"
    llm_timeout: float = 30.0  # Seconds; the model call never runs unbounded
    llm_temperature: float = 0.1

    # Development mode
    dev_mode: bool = True
    log_level: str = "INFO"

    # Data directory
    data_dir: Path = Path.home() / ".fintrack"

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000"]

    # Header set by the identity provider's proxy once the session is verified
    auth_user_header: str = "X-User-Id"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,  # GEMINI_API_KEY and gemini_api_key both work
        extra="ignore",  # Ignore extra environment variables
    )

    @property
    def db_path(self) -> Path:
        """Get the SQLite database path."""
        suffix = "dev" if self.dev_mode else "prod"
        return self.data_dir / f"fintrack_{suffix}.db"

    @property
    def has_gemini_key(self) -> bool:
        return bool(self.gemini_api_key)

    def ensure_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def log_config(self) -> None:
        """Log current configuration with sensitive values redacted."""
        if self.gemini_api_key:
            key_display = f"set ({self.gemini_api_key[:4]}...{self.gemini_api_key[-4:]})"
        else:
            key_display = "not set"

        logger.info("Configuration loaded")
        logger.info("  LLM model:        %s", self.llm_model)
        logger.info("  Gemini API key:   %s", key_display)
        logger.info("  LLM timeout:      %ss", self.llm_timeout)
        logger.info("  Dev mode:         %s", self.dev_mode)
        logger.info("  Database:         %s", self.db_path)
        logger.info("  Auth header:      %s", self.auth_user_header)
        logger.info("  API host:         %s:%s", self.api_host, self.api_port)


# Global settings instance
settings = Settings()
