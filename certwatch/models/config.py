"""
Configuration data models for the certificate tracking application.
"""
from dataclasses import dataclass


@dataclass
class Config:
    """Main configuration class containing all application settings."""

    # Database settings
    database_path: str = "data/certwatch.db"

    # Storage settings
    upload_dir: str = "data/uploads"
    max_upload_bytes: int = 5 * 1024 * 1024

    # Authentication settings
    api_username: str = "admin"
    api_password: str = ""
    secret_key: str = ""
    session_lifetime_hours: int = 24

    # Dashboard settings
    expiring_days_default: int = 30

    # Application settings
    api_port: int = 3000
    log_level: str = "INFO"
    log_file_path: str = "logs/certwatch.log"

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_types()

    def _validate_types(self):
        """Ensure all configuration values have correct types."""
        if not isinstance(self.max_upload_bytes, int) or self.max_upload_bytes <= 0:
            raise ValueError("max_upload_bytes must be a positive integer")

        if not isinstance(self.session_lifetime_hours, int) or self.session_lifetime_hours <= 0:
            raise ValueError("session_lifetime_hours must be a positive integer")

        if not isinstance(self.expiring_days_default, int) or not (0 <= self.expiring_days_default <= 36500):
            raise ValueError("expiring_days_default must be an integer between 0 and 36500")

        if not isinstance(self.api_port, int) or not (1 <= self.api_port <= 65535):
            raise ValueError("api_port must be an integer between 1 and 65535")

        if self.log_level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError("log_level must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL")


@dataclass
class ConfigValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    severity: str = "error"  # error, warning

    def __str__(self):
        return f"{self.severity.upper()}: {self.field} - {self.message}"


@dataclass
class ConfigValidationResult:
    """Result of configuration validation."""
    is_valid: bool
    errors: list[ConfigValidationError]
    warnings: list[ConfigValidationError]

    def __post_init__(self):
        """Separate errors and warnings."""
        all_issues = self.errors + self.warnings
        self.errors = [e for e in all_issues if e.severity == "error"]
        self.warnings = [e for e in all_issues if e.severity == "warning"]

    def has_errors(self) -> bool:
        """Check if there are any validation errors."""
        return len(self.errors) > 0

    def has_warnings(self) -> bool:
        """Check if there are any validation warnings."""
        return len(self.warnings) > 0

    def get_error_summary(self) -> str:
        """Get a formatted summary of all errors and warnings."""
        lines = []

        if self.errors:
            lines.append("Configuration Errors:")
            for error in self.errors:
                lines.append(f"  - {error}")

        if self.warnings:
            lines.append("Configuration Warnings:")
            for warning in self.warnings:
                lines.append(f"  - {warning}")

        return "\n".join(lines) if lines else "Configuration is valid"
