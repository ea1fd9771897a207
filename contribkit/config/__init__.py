"""Configuration module for contribkit.

This module provides YAML configuration parsing and validation for
contribkit.yaml.
"""

from contribkit.config.parser import (
    StoreConfig,
    ContributionsConfig,
    IndexConfig,
    ContribKitConfig,
    ConfigError,
    DEFAULT_INDEX_URL,
    split_urls,
    load_config,
    parse_config,
)

__all__ = [
    "StoreConfig",
    "ContributionsConfig",
    "IndexConfig",
    "ContribKitConfig",
    "ConfigError",
    "DEFAULT_INDEX_URL",
    "split_urls",
    "load_config",
    "parse_config",
]
