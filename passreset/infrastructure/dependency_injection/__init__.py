from .recovery_dependencies import (
    build_recovery_flow,
    get_localizer,
    get_password_encoder,
    get_redis_client,
    get_throttle,
    get_token_store,
)

__all__ = [
    "build_recovery_flow",
    "get_localizer",
    "get_password_encoder",
    "get_redis_client",
    "get_throttle",
    "get_token_store",
]
