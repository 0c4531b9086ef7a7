"""
Translation engine configuration.

This module provides configuration settings for the translation engine
loaded from environment variables.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Find .env file in project root
_env_file = Path(__file__).parent.parent.parent.parent.parent / ".env"


class TranslationEngineConfig(BaseSettings):
    """
    Translation engine configuration from environment variables.

    All settings are prefixed with TRANSLATION_ in environment. Instances
    are passed explicitly to the orchestrator; there is no global client.
    """

    model_config = SettingsConfigDict(
        env_prefix="TRANSLATION_",
        env_file=str(_env_file) if _env_file.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Provider selection
    provider: str = "google"  # "google" | "deepl" | "openai" | "mtran"
    api_key: str = ""
    model: str = ""  # OpenAI / MTran model name
    base_url: str = ""  # MTranServer base URL

    # Engine call bounds
    timeout_seconds: float = 30.0
    max_attempts: int = 3
    retry_initial_delay: float = 1.0
    retry_max_delay: float = 10.0

    default_source_locale: str = "en"

    # Single-flight coalescing of concurrent misses (needs Redis)
    single_flight: bool = True
    lock_ttl_seconds: int = 60
    lock_blocking_timeout_seconds: float = 30.0
