"""Storage errors."""


class StorageError(Exception):
    """Base exception for session storage operations."""


class InvalidKeyError(StorageError):
    """Raised when a storage key cannot be mapped to a safe location."""
