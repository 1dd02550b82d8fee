from gallery.core.exceptions.base import GalleryException

# =============================================================================
# Gallery Domain Exceptions (raised by Services, caught by Deps)
# =============================================================================


class UnauthorizedError(GalleryException):
    """Credential missing, malformed, expired, badly signed or not matching."""

    def __init__(self, message: str = "Unauthorized", exception: Exception | None = None):
        super().__init__(message, exception)


class InvalidPathError(GalleryException):
    """Storage path or key escapes the gallery namespace."""

    def __init__(self, message: str = "Invalid path", exception: Exception | None = None):
        super().__init__(message, exception)


class InvalidUploadError(GalleryException):
    """Upload rejected by type or size constraints."""

    def __init__(self, message: str = "Invalid upload", exception: Exception | None = None):
        super().__init__(message, exception)


class StorageQuotaExceededError(GalleryException):
    """Upload would push aggregate storage past the configured maximum."""

    def __init__(
        self, message: str = "Storage quota exceeded", exception: Exception | None = None
    ):
        super().__init__(message, exception)


class ObjectNotFoundError(GalleryException):
    """Requested object does not exist."""

    def __init__(self, message: str = "Object not found", exception: Exception | None = None):
        super().__init__(message, exception)
