"""
Centralized configuration management
"""

import os
from typing import Dict, Any, Optional
from pathlib import Path
import yaml
import json
import logging

logger = logging.getLogger(__name__)


class Config:
    """Centralized configuration for the query cache"""

    # Default configuration values
    DEFAULTS = {
        # Cache behavior
        "id_field": "Id",  # Column used as the identifier for map results
        # Access checks
        "access_checks_enabled": True,  # Global toggle for AccessChecker
        # DuckDB
        "memory_limit_mb": 1024,
        "temp_dir": None,
        "csv_encoding": "utf-8",
        # Query execution
        "slow_query_ms": 500,  # Executor warns above this duration
        # Logging
        "log_level": "INFO",
        "log_format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    }

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration

        Args:
            config_file: Path to configuration file
        """
        self._config = self.DEFAULTS.copy()

        # Load from environment variables
        self._load_from_env()

        # Load from file if provided
        if config_file:
            self._load_from_file(config_file)
        else:
            # Convenience: auto-load recall_config.yaml if present
            try:
                default_file = Path("recall_config.yaml")
                if default_file.exists():
                    self._load_from_file(str(default_file))
            except OSError:
                # Non-fatal if unreadable
                pass

    def _load_from_env(self) -> None:
        """Load configuration from environment variables"""
        env_prefix = "RECALL_"

        for key in self.DEFAULTS:
            env_key = f"{env_prefix}{key.upper()}"
            if env_key in os.environ:
                value = os.environ[env_key]

                # Convert to appropriate type (bool before int: bool is an int)
                if isinstance(self.DEFAULTS[key], bool):
                    value = value.lower() in ("true", "1", "yes")
                elif isinstance(self.DEFAULTS[key], int):
                    value = int(value)
                elif isinstance(self.DEFAULTS[key], float):
                    value = float(value)

                self._config[key] = value

    def _load_from_file(self, config_file: str) -> None:
        """Load configuration from file"""
        path = Path(config_file)

        if not path.exists():
            logger.warning(f"Config file not found: {config_file}")
            return

        try:
            if path.suffix == ".yaml" or path.suffix == ".yml":
                with open(path, "r") as f:
                    file_config = yaml.safe_load(f)
            elif path.suffix == ".json":
                with open(path, "r") as f:
                    file_config = json.load(f)
            else:
                logger.error(f"Unsupported config file format: {path.suffix}")
                return

            # Update config with file values
            if file_config:
                self._config.update(file_config)

        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            logger.error(f"Error loading config file: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value
        """
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set configuration value"""
        self._config[key] = value

    def update(self, config_dict: Dict[str, Any]) -> None:
        """Update multiple configuration values"""
        self._config.update(config_dict)

    def to_dict(self) -> Dict[str, Any]:
        """Get configuration as dictionary"""
        return self._config.copy()

    def save_to_file(self, file_path: str, format: str = "yaml") -> None:
        """
        Save configuration to file

        Args:
            file_path: Output file path
            format: Output format ('yaml' or 'json')
        """
        if format not in ("yaml", "json"):
            raise ValueError(f"Unsupported format: {format}")

        try:
            with open(file_path, "w") as f:
                if format == "yaml":
                    yaml.dump(self._config, f, default_flow_style=False)
                else:
                    json.dump(self._config, f, indent=2)

            logger.info(f"Configuration saved to {file_path}")

        except OSError as e:
            logger.error(f"Error saving configuration: {e}")
            raise


# Global configuration instance
config = Config()


def bootstrap_logging() -> None:
    """Initialize root logging once using Config defaults.

    Safe to call multiple times; subsequent calls are no-ops if the root
    logger already has handlers.
    """
    root = logging.getLogger()
    if root.handlers:
        return
    level_name = str(config.get("log_level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format=config.get("log_format", "%(asctime)s %(levelname)s %(message)s"))
