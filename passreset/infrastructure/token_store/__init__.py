from .memory_token_store import InMemoryTokenStore
from .redis_token_store import RedisTokenStore

__all__ = ["InMemoryTokenStore", "RedisTokenStore"]
