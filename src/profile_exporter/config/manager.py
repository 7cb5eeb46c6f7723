"""
Configuration management and singleton pattern.

This module provides the main configuration loading interface, caching the
validated configuration so that it is loaded and validated only once.
"""

import logging
from pathlib import Path
from typing import Optional

from ..models.config import AppConfig
from ..validation import handle_config_error, ErrorSeverity
from .loader import load_toml_file
from .validators import validate_app_config

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

_CONFIG: Optional[AppConfig] = None

# Resolved relative to the working directory; the CLI overrides it with --config-file.
_CONFIG_FILE_PATH = Path("profile-exporter.toml")


def set_config_path(config_path: Path) -> None:
    """
    Set a custom configuration file path.

    Clears any cached configuration so the next get_config() call loads
    from the new path.

    Args:
        config_path: Path to the TOML configuration file
    """
    global _CONFIG_FILE_PATH, _CONFIG
    _CONFIG_FILE_PATH = Path(config_path)
    _CONFIG = None
    logger.info(f"Configuration path set to: {config_path}")


def clear_config_cache() -> None:
    """Clear the cached configuration, forcing a reload on next access."""
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def _load_config(config_path: Path) -> AppConfig:
    """
    Load and validate the application configuration.

    Raises:
        FileNotFoundError: If the configuration file is missing
        ValidationError: If configuration validation fails
        tomllib.TOMLDecodeError: If the file is malformed
    """
    try:
        config_data = load_toml_file(config_path, "configuration file")
        app_config = validate_app_config(config_data)

        logger.info(
            f"Successfully loaded configuration with {len(app_config.queries)} queries "
            f"writing to {app_config.remote_write.url}"
        )
        return app_config

    except FileNotFoundError as e:
        handle_config_error(
            error=e,
            context="loading configuration file",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise
    except Exception as e:
        handle_config_error(
            error=e,
            context="processing configuration",
            severity=ErrorSeverity.ERROR,
            reraise=True,
            logger=logger
        )
        raise


def get_config() -> AppConfig:
    """
    Get the application configuration, loading it on first use.

    Returns:
        The cached AppConfig instance

    Raises:
        FileNotFoundError: If the configuration file is missing
        ValidationError: If configuration validation fails
        tomllib.TOMLDecodeError: If the file is malformed
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = _load_config(_CONFIG_FILE_PATH)
    return _CONFIG


def is_config_loaded() -> bool:
    """Check if configuration has been loaded and cached."""
    return _CONFIG is not None


def get_config_info() -> dict:
    """
    Get information about the current configuration state.

    Returns:
        Dictionary with configuration metadata
    """
    return {
        "config_loaded": is_config_loaded(),
        "config_path": str(_CONFIG_FILE_PATH),
        "queries_count": len(_CONFIG.queries) if _CONFIG else 0,
        "remote_write_url": _CONFIG.remote_write.url if _CONFIG else None,
    }
