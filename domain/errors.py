class StorageError(Exception):
    """Raised by repositories when the backing store cannot be read or written."""


class InvalidSecretError(ValueError):
    """Raised when a shared secret cannot be decoded into key material."""
