from pathlib import Path
import logging

from croniter import croniter
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from program_guide.utils.logging_helpers import sanitize_url_for_logging


logger = logging.getLogger(__name__)

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class CustomSettings(BaseSettings):
    """Sync settings loaded from environment variables and an env file.

    Validates configuration at startup so a bad value fails before any
    connection is opened.
    """

    database_url: str
    tvmaze_base_url: str = "https://api.tvmaze.com"
    http_timeout_sec: float = 30.0
    http_user_agent: str = "program-guide-sync/0.1.0"
    log_level: str = "INFO"
    require_bulk_updates: bool = False  # Abort instead of syncing everything
    create_schema: bool = True
    sync_cron: str = "0 4 * * *"  # Daily at 4 AM
    sync_misfire_grace_sec: int = 3600

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, value: str) -> str:
        """Validate the store connection string looks like a SQLAlchemy URL."""
        value = value.strip()
        if "://" not in value:
            raise ValueError(f"database_url must be a SQLAlchemy URL: {value!r}")
        return value

    @field_validator("tvmaze_base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        """Validate the TVMaze base URL is HTTP/HTTPS."""
        value = value.strip().rstrip("/")
        if not value.lower().startswith(("http://", "https://")):
            raise ValueError(f"tvmaze_base_url must be HTTP/HTTPS: {value}")
        return value

    @field_validator("http_timeout_sec")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("http_timeout_sec must be > 0")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        normalized = value.upper()
        if normalized not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}")
        return normalized

    @field_validator("sync_misfire_grace_sec")
    @classmethod
    def validate_misfire_grace(cls, value: int) -> int:
        """Validate scheduler misfire grace period (seconds)."""
        if value < 0:
            raise ValueError("sync_misfire_grace_sec must be >= 0")
        return value

    @field_validator("sync_cron")
    @classmethod
    def validate_cron_expression(cls, value: str) -> str:
        """Validate cron expression is valid."""
        try:
            croniter(value)
            return value
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Invalid cron expression '{value}': {exc}") from exc

    def __init__(self, **data):
        """Initialize settings and log configuration."""
        super().__init__(**data)

        logger.info("Configuration loaded:")
        logger.info("  Database: %s", sanitize_url_for_logging(self.database_url))
        logger.info("  TVMaze API: %s", self.tvmaze_base_url)
        logger.info("  HTTP Timeout: %ss", self.http_timeout_sec)
        logger.info("  Require Bulk Updates: %s", self.require_bulk_updates)
        logger.info("  Create Schema: %s", self.create_schema)
        logger.info("  Sync Schedule: %s", self.sync_cron)
        logger.info("  Sync Misfire Grace: %ss", self.sync_misfire_grace_sec)


def load_settings(env_file: str | Path | None = None) -> CustomSettings:
    """
    Load settings from the environment and an optional env file.

    Args:
        env_file: Path to a dotenv-style file; must exist when given

    Raises:
        FileNotFoundError: If env_file is given but does not exist
        pydantic.ValidationError: If a setting is missing or invalid
    """
    if env_file is None:
        return CustomSettings()

    path = Path(env_file)
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {path}")
    return CustomSettings(_env_file=path)


def setup_logging(level: str = "INFO") -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
