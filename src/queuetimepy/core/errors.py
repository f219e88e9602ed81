"""Exception types raised by queuetimepy."""


class QueueTimeError(Exception):
    """Base class for queuetimepy errors."""


class StorageError(QueueTimeError):
    """A storage backend failed to complete an operation."""


class ConfigurationError(QueueTimeError, ValueError):
    """Invalid configuration value or unsupported store URL."""
