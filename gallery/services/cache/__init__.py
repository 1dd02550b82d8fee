from .base import BaseRedisClient, close_redis_pool
from .rate_limiter import RateLimitDecision, RateLimiter, get_rate_limiter, rate_limiter
from .window_store import MemoryWindowStore, RedisWindowStore, WindowRecord

__all__ = [
    "BaseRedisClient",
    "close_redis_pool",
    "RateLimitDecision",
    "RateLimiter",
    "get_rate_limiter",
    "rate_limiter",
    "MemoryWindowStore",
    "RedisWindowStore",
    "WindowRecord",
]
