import pytest

from tokenvest.core.access_control import RoleRegistry
from tokenvest.core.fixed_point import SCALE
from tokenvest.core.token import InMemoryToken
from tokenvest.vesting.pool import create_pool

ADMIN = "admin"
POOL = "vesting_pool"


class ManualClock:
    def __init__(self, start_time: int):
        self.current_time = start_time

    def now(self) -> int:
        return self.current_time

    def set(self, timestamp: int):
        self.current_time = timestamp

    def advance(self, seconds: int):
        self.current_time += seconds


@pytest.fixture
def clock():
    return ManualClock(start_time=0)


@pytest.fixture
def roles():
    return RoleRegistry(admin_address=ADMIN)


@pytest.fixture
def token():
    token = InMemoryToken(address="VEST")
    token.mint(POOL, 1_000_000)
    return token


@pytest.fixture
def pool(token, roles, clock):
    return create_pool(token, is_admin=roles.admin_check(), pool_address=POOL, time_provider=clock.now)


@pytest.fixture
def half_unlock_round(pool):
    """Round from the reference scenario: start 100, cliff 200, 100s linear, 50% at cliff."""
    return pool.create_round(ADMIN, 100, 200, 100, SCALE // 2)


@pytest.fixture
def alice(pool, half_unlock_round):
    pool.enroll(ADMIN, [("alice", 1000)], half_unlock_round)
    return "alice"
