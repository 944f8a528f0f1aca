class ConfigurationError(Exception):
    """Base exception for all configuration-related errors."""


class ConfigValidationError(ConfigurationError):
    """Raised when the page configuration fails schema or domain validation."""


class ConfigLoadError(ConfigurationError):
    """Raised when the page configuration cannot be read or parsed."""
