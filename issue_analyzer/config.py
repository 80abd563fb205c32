"""
Configuration management using pydantic-settings.

This module handles loading and validating environment variables
from .env files and the system environment, and picks the LLM provider
the service talks to for its whole lifetime.
"""

from dataclasses import dataclass
from typing import Iterable, List, Literal, Optional, Tuple
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


logger = logging.getLogger(__name__)


ANTHROPIC = "anthropic"
OPENAI = "openai"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Environment variables are loaded from .env file if present,
    otherwise from system environment.

    Attributes:
        ANTHROPIC_API_KEY: Anthropic API key (preferred provider)
        OPENAI_API_KEY: OpenAI API key (used when no Anthropic key is set)
        ANTHROPIC_MODEL: Claude model used for analysis
        OPENAI_MODEL: GPT model used for analysis
        GITHUB_TOKEN: Optional GitHub token for higher API rate limits
        CACHE_FILE: Path of the JSON issue cache
        PORT: Port for FastAPI server (default: 5000)
        LOG_LEVEL: Logging level (default: INFO)
    """

    # Provider credentials, at least one is required at startup
    ANTHROPIC_API_KEY: Optional[str] = None
    OPENAI_API_KEY: Optional[str] = None

    ANTHROPIC_MODEL: str = "claude-sonnet-4-20250514"
    OPENAI_MODEL: str = "gpt-4o-mini"

    GITHUB_TOKEN: Optional[str] = None
    CACHE_FILE: str = "issues_cache.json"

    PORT: int = 5000
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Ignore extra environment variables
    )

    def configure_logging(self) -> None:
        """Configure logging based on LOG_LEVEL setting."""
        logging.basicConfig(
            level=getattr(logging, self.LOG_LEVEL),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    def provider_candidates(self) -> List[Tuple[str, Optional[str], str]]:
        """List provider credentials in priority order."""
        return [
            (ANTHROPIC, self.ANTHROPIC_API_KEY, self.ANTHROPIC_MODEL),
            (OPENAI, self.OPENAI_API_KEY, self.OPENAI_MODEL),
        ]


@dataclass(frozen=True)
class ProviderConfig:
    """The LLM provider chosen at startup.

    Attributes:
        provider: Provider name ("anthropic" or "openai")
        api_key: Credential for that provider
        model: Model identifier to request
    """
    provider: str
    api_key: str
    model: str


def select_provider(
    candidates: Iterable[Tuple[str, Optional[str], str]]
) -> ProviderConfig:
    """Pick the first candidate that has a credential.

    Args:
        candidates: (provider, api_key, model) tuples in priority order

    Returns:
        ProviderConfig for the winning candidate

    Raises:
        ConfigurationError: If no candidate carries a non-empty key
    """
    names = []
    for provider, api_key, model in candidates:
        names.append(provider)
        if api_key and api_key.strip():
            return ProviderConfig(provider=provider, api_key=api_key.strip(), model=model)

    env_vars = " or ".join(f"{name.upper()}_API_KEY" for name in names)
    raise ConfigurationError(
        f"No LLM provider credential found. Set {env_vars}."
    )


# Global settings instance
# This is loaded once at application startup
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance.

    Settings are loaded only once per process.

    Returns:
        Settings instance with loaded configuration
    """
    global _settings
    if _settings is None:
        _settings = Settings()  # type: ignore
        _settings.configure_logging()
    return _settings
