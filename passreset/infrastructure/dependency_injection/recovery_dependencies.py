"""Wiring of the password recovery flow.

Each factory builds one collaborator from ``Settings``. With a Redis client
the token store and throttle share that server, so every process sees the
same tokens and cooldowns; without one they fall back to process memory.

The user directory and notification gateway belong to the embedding
application and are always passed in.
"""

from typing import Optional

import structlog
from redis.asyncio import Redis

from passreset.core.config.settings import Settings
from passreset.domain.interfaces.collaborators import (
    ILocalizer,
    INotificationGateway,
    IPasswordEncoder,
    IPasswordHistory,
    IPasswordPolicyRepository,
    IUserDirectory,
)
from passreset.domain.interfaces.throttle import IThrottle
from passreset.domain.interfaces.token_store import ITokenStore
from passreset.domain.services.policy.password_policy_validator import PasswordPolicyValidator
from passreset.domain.services.recovery.recovery_flow import PasswordRecoveryFlow
from passreset.infrastructure.redis import create_redis
from passreset.infrastructure.security.password_encoder import BcryptPasswordEncoder
from passreset.infrastructure.throttle import InMemoryThrottle, RedisThrottle
from passreset.infrastructure.token_store import InMemoryTokenStore, RedisTokenStore
from passreset.utils.i18n import CatalogLocalizer

logger = structlog.get_logger(__name__)


def get_redis_client(settings: Settings) -> Redis:
    """Client for the shared token store and throttle, built from ``REDIS_URL``."""
    return create_redis(settings.REDIS_URL)


def get_token_store(settings: Settings, redis: Optional[Redis] = None) -> ITokenStore:
    if redis is None:
        return InMemoryTokenStore(
            code_length=settings.SHORT_CODE_LENGTH, key_bytes=settings.LONG_TOKEN_BYTES
        )
    return RedisTokenStore(
        redis,
        key_prefix=settings.REDIS_KEY_PREFIX,
        code_length=settings.SHORT_CODE_LENGTH,
        key_bytes=settings.LONG_TOKEN_BYTES,
    )


def get_throttle(settings: Settings, redis: Optional[Redis] = None) -> IThrottle:
    if redis is None:
        return InMemoryThrottle(window=settings.send_cooldown)
    return RedisThrottle(redis, window=settings.send_cooldown, key_prefix=settings.REDIS_KEY_PREFIX)


def get_password_encoder(settings: Settings) -> IPasswordEncoder:
    return BcryptPasswordEncoder(rounds=settings.BCRYPT_WORK_FACTOR)


def get_localizer(settings: Settings) -> ILocalizer:
    return CatalogLocalizer(
        supported_languages=settings.SUPPORTED_LANGUAGES,
        default_language=settings.DEFAULT_LANGUAGE,
    )


def build_recovery_flow(
    settings: Settings,
    user_directory: IUserDirectory,
    notification_gateway: INotificationGateway,
    redis: Optional[Redis] = None,
    policy_repository: Optional[IPasswordPolicyRepository] = None,
    password_history: Optional[IPasswordHistory] = None,
    password_encoder: Optional[IPasswordEncoder] = None,
    localizer: Optional[ILocalizer] = None,
    token_store: Optional[ITokenStore] = None,
    throttle: Optional[IThrottle] = None,
) -> PasswordRecoveryFlow:
    """Builds a ``PasswordRecoveryFlow`` from settings.

    Explicit collaborators take precedence over the ones derived from
    ``settings`` and ``redis``.
    """
    encoder = password_encoder or get_password_encoder(settings)
    flow = PasswordRecoveryFlow(
        user_directory=user_directory,
        token_store=token_store or get_token_store(settings, redis),
        throttle=throttle or get_throttle(settings, redis),
        notification_gateway=notification_gateway,
        password_encoder=encoder,
        policy_repository=policy_repository,
        password_history=password_history,
        policy_validator=PasswordPolicyValidator(encoder),
        localizer=localizer or get_localizer(settings),
        short_code_ttl=settings.short_code_ttl,
        long_token_ttl=settings.long_token_ttl,
        reset_base_url=settings.RESET_BASE_URL,
        reset_path=settings.RESET_PATH,
    )
    logger.info("Recovery flow wired", backend="redis" if redis is not None else "memory")
    return flow
