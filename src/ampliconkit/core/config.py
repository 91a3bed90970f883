"""
Configuration classes for ampliconkit workflows.

Settings are kept in a YAML file with one section per concern, e.g.::

    logging:
      level: DEBUG
    subset:
      normalise: true
      remove: false
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Union

import yaml


class Config:
    """Configuration class that loads YAML files and provides dot notation access."""

    def __init__(self, config_path: Union[str, Path]):
        """
        Initialize configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(self.config_path, 'r') as f:
            self._data = yaml.safe_load(f) or {}

        # Convert nested dictionaries to Config objects for dot notation
        self._convert_dicts()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Build a configuration from an in-memory dictionary."""
        config_obj = cls.__new__(cls)  # Create without calling __init__
        config_obj.config_path = None
        config_obj._data = data
        config_obj._convert_dicts()
        return config_obj

    def _convert_dicts(self):
        """Convert nested dictionaries to Config objects recursively."""
        for key, value in self._data.items():
            if isinstance(value, dict):
                setattr(self, key, Config.from_dict(value))
            else:
                setattr(self, key, value)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value with optional default."""
        return getattr(self, key, default)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config back to dictionary."""
        return self._data.copy()

    def __getitem__(self, key: str) -> Any:
        """Allow dictionary-style access."""
        return getattr(self, key)

    def __contains__(self, key: str) -> bool:
        """Check if key exists in config."""
        return key in self._data

    def __repr__(self) -> str:
        return f"Config({self._data})"


@dataclass
class SubsetOptions:
    """Default options for taxonomic subsetting."""
    normalise: bool = False
    remove: bool = False

    @classmethod
    def from_config(cls, config: Config) -> "SubsetOptions":
        section = config.get("subset")
        if section is None:
            return cls()
        return cls(
            normalise=bool(section.get("normalise", False)),
            remove=bool(section.get("remove", False)),
        )
