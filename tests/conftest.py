import pytest
import pytest_asyncio
from fakeredis import aioredis

from passreset.domain.value_objects.password_policy import PasswordPolicy
from passreset.infrastructure.notifications import InMemoryNotificationGateway
from passreset.infrastructure.security import BcryptPasswordEncoder
from tests.utils.fakes import FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(scope="session")
def password_encoder():
    # Lowest bcrypt work factor keeps the suite fast.
    return BcryptPasswordEncoder(rounds=4)


@pytest.fixture
def notification_gateway():
    return InMemoryNotificationGateway()


@pytest.fixture
def min_length_policy():
    return PasswordPolicy(organization_id=1, min_length=8)


@pytest_asyncio.fixture
async def redis_client():
    client = aioredis.FakeRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()
