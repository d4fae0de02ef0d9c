"""
Centralized configuration with environment variable overrides.

Store location, export formatting and staff bucket labels are
configurable here. Nothing is hardcoded in classifier or aggregation logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class StoreConfig:
    """Location of the persistent visit-history store."""

    history_db_path: str = os.getenv("HISTORY_DB_PATH", "visit_history.db")
    connect_timeout_sec: float = _safe_float("HISTORY_DB_TIMEOUT", "5.0")


@dataclass(frozen=True)
class StaffConfig:
    """Bucket labels used by the staff rollup."""

    unassigned_label: str = os.getenv("UNASSIGNED_STAFF_LABEL", "unassigned")
    auto_assigned_label: str = os.getenv("AUTO_ASSIGNED_STAFF_LABEL", "auto-assigned")


@dataclass(frozen=True)
class ExportConfig:
    """Formatting of the fixed-column export rows."""

    rate_decimals: int = _safe_int("EXPORT_RATE_DECIMALS", "1")
    total_label: str = os.getenv("EXPORT_TOTAL_LABEL", "TTL")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    store: StoreConfig = field(default_factory=StoreConfig)
    staff: StaffConfig = field(default_factory=StaffConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not config.store.history_db_path.strip():
        raise ValueError("HISTORY_DB_PATH must not be empty")
    if config.store.connect_timeout_sec <= 0:
        raise ValueError(
            f"HISTORY_DB_TIMEOUT must be > 0, got {config.store.connect_timeout_sec}"
        )
    if not 0 <= config.export.rate_decimals <= 4:
        raise ValueError(
            f"EXPORT_RATE_DECIMALS must be between 0 and 4, got {config.export.rate_decimals}"
        )
    if not config.export.total_label:
        raise ValueError("EXPORT_TOTAL_LABEL must not be empty")
    if config.staff.unassigned_label == config.staff.auto_assigned_label:
        raise ValueError(
            "UNASSIGNED_STAFF_LABEL and AUTO_ASSIGNED_STAFF_LABEL must differ, "
            f"both are {config.staff.unassigned_label!r}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded (history store: %s)", config.store.history_db_path)
    return config


# Singleton instance
settings = load_config()
