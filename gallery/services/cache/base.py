from abc import ABC

from loguru import logger
from redis.asyncio import ConnectionPool, Redis

from gallery.core.config import settings

# Global shared Redis connection pool
_redis_pool: ConnectionPool | None = None


def get_redis_pool() -> ConnectionPool:
    """
    Get or create the shared Redis connection pool.

    Returns:
        ConnectionPool: Shared Redis connection pool instance

    Raises:
        ValueError: If no Redis host is configured

    Note:
        Socket timeouts bound every Redis call made by the rate limiter,
        a timed out call is handled like any other store failure.
    """
    global _redis_pool

    if settings.redis_url is None:
        raise ValueError("Redis is not configured (REDIS_HOST is empty).")

    if _redis_pool is None:
        _redis_pool = ConnectionPool.from_url(
            settings.redis_url.human_repr(),
            encoding="utf-8",
            decode_responses=True,
            max_connections=settings.redis_max_pool_connections,
            socket_connect_timeout=settings.redis_socket_connect_timeout,
            socket_timeout=settings.redis_socket_timeout,
        )
        logger.info(
            "Redis connection pool created with "
            f"max_connections={settings.redis_max_pool_connections}"
        )
    return _redis_pool


async def close_redis_pool() -> None:
    """Disconnect every pooled connection, called on application shutdown"""
    global _redis_pool

    if _redis_pool is not None:
        await _redis_pool.disconnect()
        _redis_pool = None
        logger.info("Redis connection pool closed")


class BaseRedisClient(ABC):
    """
    Abstract base class for Redis clients with shared connection handling.

    The client stays None when Redis is not configured or could not be set
    up; subclasses decide how to degrade in that case.
    """

    def __init__(self):
        self._redis_client: Redis | None = None

        if settings.redis_url is not None:
            self._initialize_redis()

    @property
    def redis_client(self) -> Redis | None:
        """
        Get the Redis client instance

        Returns:
            Redis | None: Redis client or None if Redis is not available
        """
        return self._redis_client

    @redis_client.setter
    def redis_client(self, client: Redis | None) -> None:
        self._redis_client = client

    def _initialize_redis(self):
        """Initialize Redis connection using shared connection pool"""
        try:
            pool = get_redis_pool()
            self._redis_client = Redis(connection_pool=pool)
            logger.debug(
                f"Redis client initialized for {self.__class__.__name__} using shared pool"
            )
        except (ValueError, OSError) as e:
            logger.error(f"Failed to initialize Redis for {self.__class__.__name__}: {e}")
            self._redis_client = None

    async def health_check(self) -> bool:
        """
        Check Redis connection health by pinging the server.

        Returns:
            bool: True if Redis is healthy and responsive, False otherwise
        """
        if self.redis_client is None:
            return False

        try:
            await self.redis_client.ping()
            return True
        except Exception as e:
            logger.error(f"Redis health check failed for {self.__class__.__name__}: {e}")
            return False

    async def close(self):
        """Close Redis connection gracefully"""
        if self.redis_client:
            try:
                await self.redis_client.aclose()
                logger.info(f"Redis connection closed for {self.__class__.__name__}")
            except Exception as e:
                logger.error(f"Error closing Redis connection for {self.__class__.__name__}: {e}")
