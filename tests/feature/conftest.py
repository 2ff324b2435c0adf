import pytest

from passreset.domain.services.recovery.recovery_flow import PasswordRecoveryFlow
from passreset.infrastructure.throttle import InMemoryThrottle, RedisThrottle
from passreset.infrastructure.token_store import InMemoryTokenStore, RedisTokenStore
from passreset.utils.i18n import CatalogLocalizer
from tests.factories import create_fake_user
from tests.utils.fakes import InMemoryPasswordHistory, InMemoryPolicyRepository, InMemoryUserDirectory

ALICE_EMAIL = "alice@example.com"
ALICE_PASSWORD = "Original#Pass1"


@pytest.fixture
def alice(password_encoder):
    return create_fake_user(
        id=101,
        email=ALICE_EMAIL,
        login_name="alice",
        real_name="Alice Liddell",
        organization_id=1,
        hashed_password=password_encoder.hash(ALICE_PASSWORD),
    )


@pytest.fixture
def user_directory(alice):
    return InMemoryUserDirectory(
        alice,
        create_fake_user(id=102, email="ldap.user@example.com", is_ldap=True),
    )


@pytest.fixture
def password_history():
    return InMemoryPasswordHistory()


@pytest.fixture
def make_flow(user_directory, notification_gateway, password_encoder, min_length_policy, password_history):
    def _make(token_store, throttle, policy=None):
        return PasswordRecoveryFlow(
            user_directory=user_directory,
            token_store=token_store,
            throttle=throttle,
            notification_gateway=notification_gateway,
            password_encoder=password_encoder,
            policy_repository=InMemoryPolicyRepository(policy or min_length_policy),
            password_history=password_history,
            localizer=CatalogLocalizer(supported_languages=["en", "es"]),
            reset_base_url="https://id.example.com",
        )

    return _make


@pytest.fixture
def memory_flow(make_flow, clock):
    return make_flow(InMemoryTokenStore(clock=clock), InMemoryThrottle(clock=clock))


@pytest.fixture
def redis_flow(make_flow, redis_client):
    return make_flow(RedisTokenStore(redis_client), RedisThrottle(redis_client))
