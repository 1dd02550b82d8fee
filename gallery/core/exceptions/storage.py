from gallery.core.exceptions.base import GalleryException


class StorageError(GalleryException):
    """
    Base exception for object store operations
    """

    def __init__(self, message, exception: Exception | None = None):
        super().__init__(message, exception)


class StorageNotConfiguredError(StorageError):
    """
    Object store backend selected without the settings it needs
    """

    def __init__(self, message, exception: Exception | None = None):
        super().__init__(message, exception)
