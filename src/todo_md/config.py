"""Configuration management for todo-md.

The configuration is an explicit value: the CLI loads it once and passes it
into every parse call. Nothing in the parsing core reads it from a global.
"""

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.todo-md/config.yaml")


@dataclass
class ConfigModel:
    """Configuration model for todo-md."""

    # Parsing
    tab_size: int = 4
    done_symbol: str = "x "

    # Completion behavior
    add_completion_date: bool = False
    completion_date_include_time: bool = False

    # Files
    default_file: Optional[str] = None
    default_archive_file: Optional[str] = None
    auto_archive_tasks: bool = False

    # Display preferences
    show_completed: bool = True
    show_recurring_completed: bool = True
    default_sort: str = "default"

    def __post_init__(self):
        """Post-initialization validation."""
        if not isinstance(self.tab_size, int) or self.tab_size < 1:
            logger.warning(f"Invalid tab_size {self.tab_size!r}, using 4")
            self.tab_size = 4
        if not isinstance(self.done_symbol, str) or not self.done_symbol:
            logger.warning(f"Invalid done_symbol {self.done_symbol!r}, using 'x '")
            self.done_symbol = "x "

    def to_yaml(self) -> str:
        """Serialize config to YAML."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        return yaml.dump(data, default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "ConfigModel":
        """Deserialize config from YAML, ignoring unknown keys."""
        data = yaml.safe_load(yaml_str) or {}
        if not isinstance(data, dict):
            raise ValueError("Configuration must be a YAML mapping")

        known = {f.name for f in fields(cls)}
        for key in sorted(set(data) - known):
            logger.warning(f"Ignoring unknown configuration key: {key}")

        return cls(**{key: value for key, value in data.items() if key in known})


def load_config(config_path: Optional[Path] = None) -> ConfigModel:
    """Load configuration from file, falling back to defaults."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH.expanduser()

    if not config_path.exists():
        logger.debug(f"No configuration at {config_path}, using defaults")
        return ConfigModel()

    try:
        with open(config_path, 'r') as f:
            config = ConfigModel.from_yaml(f.read())
        logger.debug(f"Loaded configuration from {config_path}")
        return config
    except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config from {config_path}: {e}")
        return ConfigModel()


def save_config(config: ConfigModel, config_path: Optional[Path] = None) -> None:
    """Save configuration to file."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH.expanduser()

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, 'w') as f:
        f.write(config.to_yaml())
    logger.info(f"Configuration saved to {config_path}")
