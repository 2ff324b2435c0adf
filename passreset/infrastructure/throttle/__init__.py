from .memory_throttle import InMemoryThrottle
from .redis_throttle import RedisThrottle

__all__ = ["InMemoryThrottle", "RedisThrottle"]
