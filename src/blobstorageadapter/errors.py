class ConfigurationError(Exception):
    """Raised when required storage settings are missing."""

    pass
