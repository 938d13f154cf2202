"""
Configuration file loading.

Search order:
1. Explicit path (--config flag)
2. .kubesample/config.yaml (current directory)
3. ~/.kubesample/config.yaml (user home)
4. Default configuration
"""

from __future__ import annotations

from pathlib import Path

import structlog
import yaml

from kubesample.config.scrape_config import ScrapeConfig
from kubesample.core.errors import ConfigurationError

logger = structlog.get_logger()


def get_config_path(explicit_path: str | Path | None = None) -> Path | None:
    """
    Find the configuration file to use.

    Returns:
        Path to config file or None if not found
    """
    if explicit_path:
        path = Path(explicit_path)
        if path.exists():
            return path
        return None

    cwd_config = Path.cwd() / ".kubesample" / "config.yaml"
    if cwd_config.exists():
        return cwd_config

    home_config = Path.home() / ".kubesample" / "config.yaml"
    if home_config.exists():
        return home_config

    return None


class ConfigLoader:
    """
    Loads the scrape configuration from a YAML file.
    """

    def __init__(self, config_path: Path | None = None):
        self.config_path = config_path or get_config_path()

    def load(self) -> ScrapeConfig:
        """Load configuration from file or return defaults."""
        if self.config_path and self.config_path.exists():
            return self._load_from_file(self.config_path)
        return ScrapeConfig.default()

    def _load_from_file(self, path: Path) -> ScrapeConfig:
        """Load config from YAML file; unreadable files fall back to defaults."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("failed_to_load_config", path=str(path), error=str(e))
            return ScrapeConfig.default()

        if not isinstance(data, dict):
            raise ConfigurationError("config file must contain a mapping", {"path": str(path)})

        logger.debug("loaded_config", path=str(path))
        return ScrapeConfig.from_dict(data)

    def save(self, config: ScrapeConfig, path: Path | None = None):
        """Save configuration to file."""
        target_path = path or self.config_path or (Path.home() / ".kubesample" / "config.yaml")
        target_path.parent.mkdir(parents=True, exist_ok=True)

        with open(target_path, "w") as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)

        logger.info("saved_config", path=str(target_path))


def load_config(path: str | Path | None = None) -> ScrapeConfig:
    """
    Convenience function to load configuration.

    Args:
        path: Optional explicit config file path

    Raises:
        ConfigurationError: if an explicit path does not exist or the
            file holds an invalid namespace selector
    """
    if path and not Path(path).exists():
        raise ConfigurationError("config file not found", {"path": str(path)})
    config_path = Path(path) if path else get_config_path()
    return ConfigLoader(config_path).load()
