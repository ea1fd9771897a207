"""YAML configuration parser for contribkit.

This module provides parsing and validation for contribkit.yaml files.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
import yaml

from contribkit.core.directory import ContentStore

DEFAULT_INDEX_URL = "https://downloads.arduino.cc/packages/package_index.json"


class ConfigError(Exception):
    """Configuration parsing or validation error."""

    pass


@dataclass
class StoreConfig:
    """Content store locations. None means the platform default."""

    root: Optional[Path] = None
    staging: Optional[Path] = None
    index_dir: Optional[Path] = None

    def content_store(self) -> ContentStore:
        default = ContentStore.default()
        return ContentStore(
            packages_dir=self.root or default.packages_dir,
            staging_dir=self.staging or default.staging_dir,
            index_dir=self.index_dir or default.index_dir,
        )


@dataclass
class ContributionsConfig:
    """Install/remove policy."""

    trust_all: bool = False
    additional_urls: List[str] = field(default_factory=list)


@dataclass
class IndexConfig:
    """Package index sources."""

    default_url: str = DEFAULT_INDEX_URL
    keyring: Optional[Path] = None


@dataclass
class ContribKitConfig:
    """Complete contribkit configuration."""

    store: StoreConfig = field(default_factory=StoreConfig)
    contributions: ContributionsConfig = field(default_factory=ContributionsConfig)
    index: IndexConfig = field(default_factory=IndexConfig)


def split_urls(value: str) -> List[str]:
    """
    Split a comma-separated URL list.

    Entries are stripped and blanks dropped, so "" yields [].
    """
    return [url.strip() for url in value.split(",") if url.strip()]


def load_config(config_path: Optional[Path] = None) -> ContribKitConfig:
    """
    Load configuration, falling back to defaults when no path is given.

    Raises:
        ConfigError: If the file exists but is invalid
    """
    if config_path is None:
        return ContribKitConfig()
    return parse_config(config_path)


def parse_config(config_path: Path) -> ContribKitConfig:
    """
    Parse contribkit.yaml configuration file.

    Args:
        config_path: Path to contribkit.yaml

    Returns:
        Parsed and validated configuration

    Raises:
        ConfigError: If configuration is invalid
    """
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}")

    if data is None:
        return ContribKitConfig()

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a YAML mapping")

    return ContribKitConfig(
        store=_parse_store(_section(data, "store")),
        contributions=_parse_contributions(_section(data, "contributions")),
        index=_parse_index(_section(data, "index")),
    )


def _section(data: dict, name: str) -> dict:
    section = data.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' must be a mapping")
    return section


def _path(section: dict, key: str, section_name: str) -> Optional[Path]:
    value = section.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"'{section_name}.{key}' must be a path string")
    return Path(value).expanduser()


def _parse_store(section: dict) -> StoreConfig:
    return StoreConfig(
        root=_path(section, "root", "store"),
        staging=_path(section, "staging", "store"),
        index_dir=_path(section, "index_dir", "store"),
    )


def _parse_contributions(section: dict) -> ContributionsConfig:
    trust_all = section.get("trust_all", False)
    if not isinstance(trust_all, bool):
        raise ConfigError("'contributions.trust_all' must be true or false")

    urls = section.get("additional_urls", "")
    if urls is None:
        urls = ""
    if isinstance(urls, str):
        additional_urls = split_urls(urls)
    elif isinstance(urls, list) and all(isinstance(u, str) for u in urls):
        additional_urls = [u.strip() for u in urls if u.strip()]
    else:
        raise ConfigError(
            "'contributions.additional_urls' must be a comma-separated string "
            "or a list of strings"
        )

    return ContributionsConfig(trust_all=trust_all, additional_urls=additional_urls)


def _parse_index(section: dict) -> IndexConfig:
    default_url = section.get("default_url", DEFAULT_INDEX_URL)
    if not isinstance(default_url, str) or not default_url.strip():
        raise ConfigError("'index.default_url' must be a non-empty string")

    return IndexConfig(
        default_url=default_url.strip(),
        keyring=_path(section, "keyring", "index"),
    )


__all__ = [
    "ConfigError",
    "StoreConfig",
    "ContributionsConfig",
    "IndexConfig",
    "ContribKitConfig",
    "DEFAULT_INDEX_URL",
    "split_urls",
    "load_config",
    "parse_config",
]
