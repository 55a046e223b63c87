#!/usr/bin/env python3
"""
Configuration Management for Money Manager

Handles environment-based configuration with sensible defaults and
validation. Supports development, test and production environments.
"""

import codecs
import logging
import os
import tempfile
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Environment(Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


@dataclass
class StorageConfig:
    """Where the ledger lives on disk."""

    ledger_dir: Path
    ledger_filename: str = "ledger.json"
    backup_dir: Path | None = None

    @property
    def ledger_file(self) -> Path:
        return self.ledger_dir / self.ledger_filename


@dataclass
class ImportConfig:
    """Legacy text import defaults."""

    skip_duplicates: bool = True
    encoding: str = "utf-8"


@dataclass
class StatsConfig:
    """Statistics aggregation parameters."""

    # Categories below this share of their type's total fold into "other"
    long_tail_ratio: str = "0.025"
    # Ranges longer than this emit only days with activity
    sparse_series_days: int = 365 * 5


@dataclass
class Config:
    """
    Main configuration class for the money manager.

    Loads configuration from environment variables with defaults and
    validation for each environment type.
    """

    environment: Environment

    # Core directories
    data_dir: Path

    # Component configurations
    storage: StorageConfig
    importer: ImportConfig
    stats: StatsConfig

    # Application settings
    default_currency: str = "CNY"
    debug: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_environment(cls) -> "Config":
        """Create configuration from environment variables."""
        env = Environment(os.getenv("MONEY_MANAGER_ENV", "development"))

        if env == Environment.TEST:
            default_test_dir = Path(tempfile.gettempdir()) / "test_money_manager"
            base_dir = Path(os.getenv("MONEY_MANAGER_DATA_DIR", str(default_test_dir)))
        else:
            base_dir = Path(os.getenv("MONEY_MANAGER_DATA_DIR", "./data")).expanduser().resolve()

        data_dir = base_dir
        data_dir.mkdir(parents=True, exist_ok=True)

        storage = StorageConfig(
            ledger_dir=data_dir / "ledger",
            backup_dir=data_dir / "backups",
        )

        importer = ImportConfig(
            skip_duplicates=os.getenv("IMPORT_SKIP_DUPLICATES", "true").lower() == "true",
            encoding=os.getenv("IMPORT_ENCODING", "utf-8"),
        )

        stats = StatsConfig(
            long_tail_ratio=os.getenv("LONG_TAIL_RATIO", "0.025"),
            sparse_series_days=int(os.getenv("SPARSE_SERIES_DAYS", str(365 * 5))),
        )

        return cls(
            environment=env,
            data_dir=data_dir,
            storage=storage,
            importer=importer,
            stats=stats,
            default_currency=os.getenv("DEFAULT_CURRENCY", "CNY"),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> list:
        """Validate configuration and return list of errors."""
        errors = []

        if not self.data_dir.exists():
            errors.append(f"data_dir does not exist: {self.data_dir}")

        try:
            ratio = Decimal(self.stats.long_tail_ratio)
            if not 0 < ratio < 1:
                errors.append("LONG_TAIL_RATIO must be between 0 and 1")
        except InvalidOperation:
            errors.append(f"LONG_TAIL_RATIO is not a number: {self.stats.long_tail_ratio}")

        if self.stats.sparse_series_days <= 0:
            errors.append("SPARSE_SERIES_DAYS must be positive")

        try:
            codecs.lookup(self.importer.encoding)
        except LookupError:
            errors.append(f"Unknown IMPORT_ENCODING: {self.importer.encoding}")

        if not self.default_currency:
            errors.append("DEFAULT_CURRENCY must not be empty")

        return errors

    def setup_logging(self) -> None:
        """Configure logging based on configuration."""
        level = getattr(logging, self.log_level, logging.INFO)

        # Configure format based on environment
        if self.environment == Environment.DEVELOPMENT:
            format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            format_str = "%(asctime)s - %(levelname)s - %(message)s"

        logging.basicConfig(level=level, format=format_str, datefmt="%Y-%m-%d %H:%M:%S")

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a plain dictionary for display."""
        result: dict[str, Any] = {}

        for field_name, field_value in self.__dict__.items():
            if hasattr(field_value, "__dict__") and not isinstance(field_value, Enum):
                result[field_name] = {
                    name: str(value) if isinstance(value, Path) else value
                    for name, value in field_value.__dict__.items()
                }
            elif isinstance(field_value, Path):
                result[field_name] = str(field_value)
            elif isinstance(field_value, Enum):
                result[field_name] = field_value.value
            else:
                result[field_name] = field_value

        return result


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_environment()

        # Validate configuration
        errors = _config.validate()
        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

        # Setup logging
        _config.setup_logging()

    return _config


def reload_config() -> Config:
    """Reload configuration from environment (useful for testing)."""
    global _config
    _config = None
    return get_config()


# Convenience functions
def get_data_dir() -> Path:
    """Get the data directory path."""
    return get_config().data_dir


def is_development() -> bool:
    """Check if running in development environment."""
    return get_config().environment == Environment.DEVELOPMENT


def is_test() -> bool:
    """Check if running in test environment."""
    return get_config().environment == Environment.TEST


def is_production() -> bool:
    """Check if running in production environment."""
    return get_config().environment == Environment.PRODUCTION
