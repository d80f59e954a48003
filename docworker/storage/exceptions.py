class BlobStoreError(Exception):
    """Raised when an object storage operation fails."""


class BlobNotFound(BlobStoreError):
    """Raised when the requested object key does not exist."""
