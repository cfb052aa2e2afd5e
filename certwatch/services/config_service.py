"""
Configuration service for loading and validating application settings.
"""
import os
import configparser
from typing import Optional, Dict, Any
import logging

from ..models.config import Config, ConfigValidationError, ConfigValidationResult


DEFAULT_SECRET_KEY = "change-me-in-production"


class ConfigService:
    """Service for loading and validating application configuration."""

    # Maps 'section.key' (or bare key) names to Config fields
    CONFIG_MAPPING = {
        "database.path": ("database_path", str),
        "database_path": ("database_path", str),

        "storage.upload_dir": ("upload_dir", str),
        "upload_dir": ("upload_dir", str),
        "storage.max_upload_bytes": ("max_upload_bytes", int),
        "max_upload_bytes": ("max_upload_bytes", int),

        "auth.username": ("api_username", str),
        "api_username": ("api_username", str),
        "auth.password": ("api_password", str),
        "api_password": ("api_password", str),
        "auth.secret_key": ("secret_key", str),
        "secret_key": ("secret_key", str),
        "auth.session_lifetime_hours": ("session_lifetime_hours", int),
        "session_lifetime_hours": ("session_lifetime_hours", int),

        "dashboard.expiring_days_default": ("expiring_days_default", int),
        "expiring_days_default": ("expiring_days_default", int),

        "app.port": ("api_port", int),
        "api_port": ("api_port", int),
        "app.log_level": ("log_level", str),
        "log_level": ("log_level", str),
        "app.log_file_path": ("log_file_path", str),
        "log_file_path": ("log_file_path", str),
    }

    def __init__(self, config_path: Optional[str] = None):
        self.logger = logging.getLogger(__name__)
        self._config = None
        if config_path:
            self._config = self.load_config(config_path)

    def get_config(self) -> Config:
        """
        Get the loaded configuration.

        Returns:
            Config object

        Raises:
            ValueError: If no configuration has been loaded
        """
        if self._config is None:
            raise ValueError("No configuration loaded. Call load_config() first.")
        return self._config

    def load_config(self, config_path: str) -> Config:
        """
        Load configuration from a property file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Config object with loaded settings

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid or has validation errors
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        config_data = self._load_config_file(config_path)
        config = self._create_config_from_data(config_data)

        validation_result = self.validate_config(config)

        if validation_result.has_errors():
            error_summary = validation_result.get_error_summary()
            raise ValueError(f"Configuration validation failed:\n{error_summary}")

        if validation_result.has_warnings():
            warning_summary = validation_result.get_error_summary()
            self.logger.warning(f"Configuration warnings:\n{warning_summary}")

        self._config = config
        return config

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """Load configuration data from file."""
        config_parser = configparser.ConfigParser(interpolation=None)

        try:
            config_parser.read(config_path)
        except configparser.Error as e:
            raise ValueError(f"Failed to parse configuration file: {e}")

        config_data = {}
        for section in config_parser.sections():
            for key, value in config_parser.items(section):
                config_data[f"{section}.{key}"] = value

        for key, value in config_parser.defaults().items():
            config_data.setdefault(key, value)

        return config_data

    def _create_config_from_data(self, config_data: Dict[str, Any]) -> Config:
        """Create Config object from configuration data."""
        config_kwargs = {}

        for config_key, raw_value in config_data.items():
            if config_key not in self.CONFIG_MAPPING:
                continue

            field_name, field_type = self.CONFIG_MAPPING[config_key]
            try:
                if field_type == int:
                    value = int(raw_value)
                else:
                    value = str(raw_value) if raw_value is not None else None
            except (ValueError, TypeError) as e:
                raise ValueError(f"Invalid value for {config_key}: {raw_value} ({e})")

            config_kwargs[field_name] = value

        return Config(**config_kwargs)

    def validate_config(self, config: Config) -> ConfigValidationResult:
        """
        Validate configuration settings.

        Args:
            config: Configuration object to validate

        Returns:
            ConfigValidationResult with validation results
        """
        errors = []
        warnings = []

        if not config.api_username:
            errors.append(ConfigValidationError(
                "api_username",
                "API username is required for authentication"
            ))

        if not config.api_password:
            errors.append(ConfigValidationError(
                "api_password",
                "API password is required for authentication"
            ))
        elif len(config.api_password) < 8:
            warnings.append(ConfigValidationError(
                "api_password",
                "API password is shorter than 8 characters",
                "warning"
            ))

        if not config.secret_key or config.secret_key == DEFAULT_SECRET_KEY:
            warnings.append(ConfigValidationError(
                "secret_key",
                "Session secret key is not set; sessions will not survive restarts",
                "warning"
            ))

        if not config.upload_dir:
            errors.append(ConfigValidationError(
                "upload_dir",
                "Upload directory is required for storing certificate files"
            ))

        for field_name, path in (("database_path", config.database_path),
                                 ("log_file_path", config.log_file_path)):
            directory = os.path.dirname(path) if path else ""
            if directory and not os.path.exists(directory):
                warnings.append(ConfigValidationError(
                    field_name,
                    f"Directory does not exist: {directory}",
                    "warning"
                ))

        if config.expiring_days_default > 365:
            warnings.append(ConfigValidationError(
                "expiring_days_default",
                "Expiring window over a year will flag most certificates",
                "warning"
            ))

        all_issues = errors + warnings
        return ConfigValidationResult(
            is_valid=len(errors) == 0,
            errors=all_issues,
            warnings=[]
        )

    def create_default_config_file(self, config_path: str) -> None:
        """
        Create a default configuration file with example settings.

        Args:
            config_path: Path where to create the config file
        """
        config_content = f"""# CertWatch Configuration File

[database]
path = data/certwatch.db

[storage]
upload_dir = data/uploads
max_upload_bytes = 5242880

[auth]
username = admin
password = change-this-password
secret_key = {DEFAULT_SECRET_KEY}
session_lifetime_hours = 24

[dashboard]
expiring_days_default = 30

[app]
port = 3000
log_level = INFO
log_file_path = logs/certwatch.log
"""

        config_dir = os.path.dirname(config_path)
        if config_dir:
            os.makedirs(config_dir, exist_ok=True)

        with open(config_path, 'w') as f:
            f.write(config_content)
