from gallery.core.exceptions.base import GalleryException


class RateLimiterException(GalleryException):
    """
    Base exception for Rate Limiter
    """

    def __init__(self, message, exception: Exception | None = None):
        super().__init__(message, exception)


class RateLimitConfigurationError(RateLimiterException):
    """
    Invalid rate limit configuration
    """

    def __init__(self, message, exception: Exception | None = None):
        super().__init__(message, exception)


class RateLimitStoreUnavailable(RateLimiterException):
    """
    Shared rate limit store is missing, failing or too slow
    """

    def __init__(self, message, exception: Exception | None = None):
        super().__init__(message, exception)
