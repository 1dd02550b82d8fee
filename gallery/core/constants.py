from enum import StrEnum
from typing import NamedTuple


class OperationClass(StrEnum):
    """Request classes that are throttled independently of each other"""

    LIST = "list"
    LOGIN = "login"
    UPLOAD = "upload"
    DELETE = "delete"
    OBJECT = "object"


class RateLimitPolicy(NamedTuple):
    max_requests: int
    window_ms: int


class RateLimitPrefix:
    """
    Centralized registry of all rate limit key prefixes.

    All rate limit keys follow the pattern: ratelimit:{operation-class}:{identifier}
    where identifier is the client IP address (or the "unknown" sentinel).

    Example:
        ```python
        from gallery.core.constants import RateLimitPrefix

        key = f"{RateLimitPrefix.LOGIN}{ip_address}"
        # Result: "ratelimit:login:192.168.1.1"
        ```
    """

    # Gallery listing (guest readable)
    LIST = "ratelimit:list:"

    # Login attempts (throttled hardest, credential stuffing target)
    LOGIN = "ratelimit:login:"

    # Uploads and deletions
    UPLOAD = "ratelimit:upload:"
    DELETE = "ratelimit:delete:"

    # Single object fetches
    OBJECT = "ratelimit:object:"

    # Failed login audit records, not a window counter
    LOGIN_FAILURE = "login_fail:"

    @classmethod
    def for_operation(cls, operation: OperationClass) -> str:
        """
        Get the key prefix of an operation class.

        Args:
            operation: The operation class being throttled

        Returns:
            str: Prefix such as "ratelimit:upload:"
        """
        return getattr(cls, operation.name)


class FileNameRules:
    PLACEHOLDER = "unnamed"
    MAX_LENGTH = 255
    # Extensions at least this long are not preserved on truncation
    MAX_EXTENSION_LENGTH = 32
    ILLEGAL_CHARACTERS = '<>:"|?*'
    RESERVED_NAMES = frozenset(
        {"CON", "PRN", "AUX", "NUL"}
        | {f"COM{i}" for i in range(1, 10)}
        | {f"LPT{i}" for i in range(1, 10)}
    )


UNKNOWN_CLIENT = "unknown"
ROUTE_KEY_SEPARATOR = "___"
OBJECT_CACHE_CONTROL = "public, max-age=31536000"
