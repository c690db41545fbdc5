"""Exception hierarchy for watchstore."""


class StorageError(Exception):
    """Base class for storage failures."""


class StorageConfigError(StorageError):
    """Raised when a backend cannot be constructed from its settings."""


class StorageBackendError(StorageError):
    """Raised when a call against a remote store fails."""
