"""
ConfigLoader module for loading and validating TOML configuration files
"""

import os
import tomllib
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, Any, Optional


class ConfigurationError(Exception):
    """Raised when configuration is invalid or incomplete"""
    pass


class EnvironmentError(Exception):
    """Raised when required environment variables are missing"""
    pass


@dataclass
class ExportConfig:
    """Configuration data class for the export client from TOML file"""
    name: str
    base_url: str
    authentication: Dict[str, Any]
    polling: Dict[str, Any]
    download: Dict[str, Any] = field(default_factory=dict)
    http: Dict[str, Any] = field(default_factory=dict)
    logging: Dict[str, Any] = field(default_factory=dict)

    @property
    def api_key_env(self) -> str:
        return self.authentication['api_key_env']

    @property
    def max_attempts(self) -> int:
        return self.polling['max_attempts']

    @property
    def poll_interval(self) -> float:
        return self.polling.get('interval_seconds', 0)

    @property
    def deadline_seconds(self) -> Optional[float]:
        return self.polling.get('deadline_seconds')

    @property
    def overwrite(self) -> bool:
        return self.download.get('overwrite', True)

    @property
    def download_directory(self) -> Optional[str]:
        return self.download.get('directory')

    @property
    def chunk_size(self) -> int:
        return self.download.get('chunk_size', 64 * 1024)

    @property
    def timeout_seconds(self) -> float:
        return self.http.get('timeout_seconds', 60.0)


class ConfigLoader:
    """Loads and validates TOML configuration files"""

    # Required configuration sections and their mandatory keys
    REQUIRED_SECTIONS = {
        'api': ['name', 'base_url'],
        'authentication': ['api_key_env'],
        'polling': ['max_attempts']
    }

    OPTIONAL_SECTIONS = [
        'download',
        'http',
        'logging'
    ]

    @staticmethod
    def load_toml_config(config_path: Path) -> ExportConfig:
        """
        Load export client configuration from TOML file

        Args:
            config_path: Path to the TOML configuration file

        Returns:
            ExportConfig object with all configuration data

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigurationError: If configuration is missing, malformed or has invalid values
        """
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, 'rb') as f:
                config_data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML syntax in {config_path}: {e}")

        ConfigLoader._validate_required_sections(config_data)
        ConfigLoader._validate_polling(config_data['polling'])

        return ExportConfig(
            name=config_data['api']['name'],
            base_url=config_data['api']['base_url'],
            authentication=config_data['authentication'],
            polling=config_data['polling'],
            **{section: config_data.get(section, {}) for section in ConfigLoader.OPTIONAL_SECTIONS}
        )

    @staticmethod
    def _validate_required_sections(config_data: Dict[str, Any]) -> None:
        """
        Validate that all required configuration sections and keys are present

        Raises:
            ConfigurationError: If any required section or key is missing
        """
        missing_items = []

        for section_name, required_keys in ConfigLoader.REQUIRED_SECTIONS.items():
            if section_name not in config_data:
                missing_items.append(f"Section [{section_name}]")
            else:
                section_data = config_data[section_name]
                for key in required_keys:
                    if key not in section_data:
                        missing_items.append(f"Key '{key}' in section [{section_name}]")

        if missing_items:
            raise ConfigurationError(
                f"Missing required configuration items: {', '.join(missing_items)}"
            )

    @staticmethod
    def _validate_polling(polling: Dict[str, Any]) -> None:
        max_attempts = polling['max_attempts']
        if isinstance(max_attempts, bool) or not isinstance(max_attempts, int) or max_attempts < 1:
            raise ConfigurationError("[polling] max_attempts must be a positive integer")

        interval = polling.get('interval_seconds', 0)
        if isinstance(interval, bool) or not isinstance(interval, (int, float)) or interval < 0:
            raise ConfigurationError("[polling] interval_seconds must be a non-negative number")

    @staticmethod
    def validate_environment_variables(config: ExportConfig) -> bool:
        """
        Validate that all required environment variables are set

        Raises:
            EnvironmentError: If any required environment variables are missing
        """
        missing_vars = []

        for key, value in config.authentication.items():
            if key.endswith('_env') and isinstance(value, str):
                if not os.getenv(value):
                    missing_vars.append(value)

        if missing_vars:
            raise EnvironmentError(
                f"Missing required environment variables: {', '.join(missing_vars)}"
            )

        return True

    @staticmethod
    def get_environment_value(env_var_name: str) -> str:
        """
        Get environment variable value with proper error handling

        Raises:
            EnvironmentError: If environment variable is not set
        """
        value = os.getenv(env_var_name)
        if value is None:
            raise EnvironmentError(f"Environment variable '{env_var_name}' is not set")
        return value

    @staticmethod
    def resolve_api_key(config: ExportConfig, explicit_key: Optional[str] = None) -> str:
        """
        Resolve the API key, preferring one passed at the call site

        Args:
            config: ExportConfig naming the key's environment variable
            explicit_key: Key supplied directly by the caller

        Returns:
            The API key

        Raises:
            EnvironmentError: If no key is given and the variable is unset
        """
        if explicit_key:
            return explicit_key
        return ConfigLoader.get_environment_value(config.api_key_env)
