"""
Configuration management for the profile_exporter package.

This module provides a clean interface for loading, validating, and accessing
configuration data from a TOML file with singleton pattern management.
"""

from .manager import (
    clear_config_cache,
    get_config,
    get_config_info,
    is_config_loaded,
    set_config_path,
)

from .loader import load_toml_file
from .validators import (
    validate_app_config,
    validate_parca_config,
    validate_queries_config,
    validate_remote_write_config,
)

__all__ = [
    # Main interface
    "get_config",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    "get_config_info",
    # Advanced interface
    "load_toml_file",
    "validate_app_config",
    "validate_parca_config",
    "validate_queries_config",
    "validate_remote_write_config",
]
