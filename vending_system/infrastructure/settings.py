"""
Application settings.

Provides typed configuration sections aggregated into a single ``Settings``
object served by ``get_settings()``.
"""

from dataclasses import dataclass, field
from typing import Optional


# =============================================================================
# Configuration Classes
# =============================================================================


@dataclass(frozen=True)
class RedisSettings:
    """Redis connection settings."""

    host: str = "localhost"
    port: int = 6379
    decode_responses: bool = True


@dataclass(frozen=True)
class ServiceSettings:
    """External service URLs."""

    # Loki push endpoint, e.g. "http://localhost:3100/loki/api/v1/push"
    loki_url: Optional[str] = None


@dataclass(frozen=True)
class LoggingSettings:
    """Log output settings."""

    app: str = "vending_system"
    log_file: str = "logs/vending_system.log"
    level: str = "DEBUG"


@dataclass(frozen=True)
class VendingSettings:
    """Vending controller settings."""

    dispense_delay: float = 1.0
    history_size: int = 10
    machine_ids: tuple[str, ...] = ("default",)
    command_channel: str = "vending_commands"

    @property
    def response_channel(self) -> str:
        """Get response channel name."""
        return f"{self.command_channel}_response"

    @property
    def notification_channel(self) -> str:
        """Get notification channel name."""
        return f"{self.command_channel}_events"


# =============================================================================
# Main Settings
# =============================================================================


@dataclass
class Settings:
    """
    Main application settings.

    Aggregates all configuration sections.
    """

    redis: RedisSettings = field(default_factory=RedisSettings)
    services: ServiceSettings = field(default_factory=ServiceSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    vending: VendingSettings = field(default_factory=VendingSettings)


# =============================================================================
# Settings Singleton
# =============================================================================


_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns:
        Settings instance.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
