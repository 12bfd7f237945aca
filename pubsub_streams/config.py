"""
Configuration settings for pubsub-streams.
"""
import logging
from typing import Optional

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Bridge configuration loaded from environment variables.
    """
    model_config = ConfigDict(
        env_prefix="PUBSUB_STREAMS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Stream settings
    stream_max_queue_size: int = Field(default=64, ge=1)

    # Single-result adapter settings
    single_result_timeout: Optional[float] = None  # seconds, None = wait forever

    # Logging
    log_level: str = "WARNING"


# Global settings instance
settings = Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Apply the configured log level to the package logger."""
    logging.getLogger("pubsub_streams").setLevel((level or settings.log_level).upper())
