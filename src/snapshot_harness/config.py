"""
Configuration management for snapshot testing.

This module handles loading and managing configuration settings
for the snapshot harness.
"""

import json
import logging
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("snapshot_config.json")


class ConfigError(Exception):
    """The configuration file is unusable."""


@dataclass
class HarnessConfig:
    """Configuration for a snapshot run."""

    # Fixed, ordered set of snapshot tests
    tests: List[str] = field(default_factory=list)

    # Directories
    snapshot_dir: str = ".snapshots/"

    # Generator: shell command template with {name}, or "module:function"
    command: Optional[str] = None
    callable: Optional[str] = None
    timeout: Optional[float] = None

    # Output settings
    color: Optional[bool] = None
    verbose: bool = False
    quiet: bool = False

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Raise ConfigError if a value has the wrong type or range."""
        if not isinstance(self.tests, list) or not all(isinstance(t, str) for t in self.tests):
            raise ConfigError("'tests' must be a list of strings")
        if self.timeout is not None and (
            not isinstance(self.timeout, (int, float)) or not self.timeout > 0
        ):
            raise ConfigError("'timeout' must be a positive number")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HarnessConfig':
        """Create from dictionary."""
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a JSON object")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def from_file(cls, config_path: Path) -> 'HarnessConfig':
        """Load configuration from JSON file."""
        if not config_path.exists():
            logger.debug(f"No configuration file at {config_path}, using defaults")
            return cls()

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Failed to parse config {config_path}: {e}") from e
        return cls.from_dict(data)

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to JSON file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2)
            f.write("\n")

    def get_snapshot_dir(self) -> Path:
        """Get snapshot directory as Path."""
        return Path(self.snapshot_dir)


class ConfigManager:
    """Manages configuration loading and saving."""

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self.config = HarnessConfig.from_file(self.config_path)

    def get_config(self) -> HarnessConfig:
        """Get the current configuration."""
        return self.config

    def update_config(self, **kwargs) -> None:
        """Update configuration with values that are not None."""
        updates = {key: value for key, value in kwargs.items() if value is not None}
        for key in updates:
            if not hasattr(self.config, key):
                raise ConfigError(f"Unknown configuration key: {key}")

        # Overrides are checked like file values before any is applied
        replace(self.config, **updates)
        for key, value in updates.items():
            setattr(self.config, key, value)

    def save_config(self) -> None:
        """Save configuration to file."""
        self.config.save_to_file(self.config_path)

    def create_default_config(self) -> None:
        """Create a default configuration file."""
        default_config = HarnessConfig()
        default_config.save_to_file(self.config_path)
        logger.info(f"Created default configuration at {self.config_path}")
