"""Simple YAML configuration loader for ScribeFlow."""

import os
import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Optional, Tuple
import logging

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "scribeflow.yaml"


class ScribeFlowConfig:
    """ScribeFlow configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, looks for scribeflow.yaml
                        in current directory and parent directories.
        """
        self.config_file = Path(config_path) if config_path else self._find_config_file()

        if not self.config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    @staticmethod
    def _find_config_file() -> Path:
        cwd = Path.cwd()
        for directory in (cwd, *cwd.parents):
            candidate = directory / DEFAULT_CONFIG_NAME
            if candidate.exists():
                return candidate
        return cwd / DEFAULT_CONFIG_NAME

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        if not config:
            raise ConfigurationError("Configuration file is empty")
        if not isinstance(config, dict):
            raise ConfigurationError("Configuration root must be a mapping")

        # Resolve relative paths
        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        for section, key in (('storage', 'credentials_path'), ('logging', 'file_path')):
            if section in config and config[section] and key in config[section]:
                value = config[section][key]
                if value and not os.path.isabs(value):
                    config[section][key] = str(config_dir / value)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'workflow.poll_interval_ms').

        Args:
            key_path: Dot-separated key path (e.g., 'storage.bucket')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'workflow.max_file_size_mb')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_storage_credentials_path(self) -> str:
        """Get the service account file for the blob store - CRASHES if not found."""
        creds_path = self.get('storage.credentials_path')
        if not creds_path:
            raise ConfigurationError("Storage credentials path not configured in scribeflow.yaml")

        creds_file = Path(creds_path)
        if not creds_file.exists():
            raise ConfigurationError(f"Storage credentials file not found: {creds_path}")

        return str(creds_file.absolute())

    def get_storage_bucket(self) -> str:
        bucket = self.get('storage.bucket')
        if not bucket:
            raise ConfigurationError("Storage bucket not configured in scribeflow.yaml")
        return bucket

    def get_assemblyai_api_key(self) -> str:
        """Read the provider credential from the environment variable named in config."""
        env_name = self.get('assemblyai.api_key_env', 'ASSEMBLYAI_API_KEY')
        api_key = os.environ.get(env_name)
        if not api_key:
            raise ConfigurationError(f"Environment variable {env_name} is not set")
        return api_key


@dataclass(frozen=True)
class WorkflowSettings:
    """Tunables injected into the workflow controller."""
    max_file_size_bytes: int = 250 * 1024 * 1024
    accepted_mime_prefixes: Tuple[str, ...] = ("video/",)
    poll_interval_seconds: float = 2.0
    transcription_timeout_seconds: float = 300.0
    state_topic: str = "workflow.state"

    @classmethod
    def from_config(cls, config: ScribeFlowConfig) -> "WorkflowSettings":
        prefixes = config.get('workflow.accepted_mime_prefixes', ["video/"])
        if isinstance(prefixes, str):
            prefixes = [prefixes]

        settings = cls(
            max_file_size_bytes=int(config.get('workflow.max_file_size_mb', 250) * 1024 * 1024),
            accepted_mime_prefixes=tuple(prefixes),
            poll_interval_seconds=config.get('workflow.poll_interval_ms', 2000) / 1000.0,
            transcription_timeout_seconds=config.get('workflow.transcription_timeout_ms', 300000) / 1000.0,
            state_topic=config.get('workflow.state_topic', 'workflow.state'),
        )
        if settings.poll_interval_seconds <= 0 or settings.transcription_timeout_seconds <= 0:
            raise ConfigurationError("Poll interval and transcription timeout must be positive")
        logger.debug(f"Workflow settings: {settings}")
        return settings
