"""
kubesample configuration.

- Pydantic-based settings (environment variables, .env files)
- Per-project and user-level YAML config files
"""

from kubesample.config.settings import Settings, get_settings
from kubesample.config.scrape_config import (
    Expression,
    NamespaceSelector,
    ScrapeConfig,
    SelectorOperator,
)
from kubesample.config.loader import (
    ConfigLoader,
    get_config_path,
    load_config,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Scrape config
    "Expression",
    "NamespaceSelector",
    "ScrapeConfig",
    "SelectorOperator",
    # Loader
    "ConfigLoader",
    "get_config_path",
    "load_config",
]
