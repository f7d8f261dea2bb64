import sys
from pathlib import Path

import fakeredis.aioredis
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from orderflow.config import Settings  # noqa: E402
from orderflow.repos.memory_repo import InMemoryOrdersRepo  # noqa: E402
from tests._factories import FakeClock  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryOrdersRepo:
    return InMemoryOrdersRepo()


@pytest.fixture
async def fake_redis(anyio_backend):
    redis = fakeredis.aioredis.FakeRedis()
    yield redis
    await redis.aclose()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        postgres_tenant_dsn_template=f"sqlite+aiosqlite:///{tmp_path}/{{tenant_id}}.db",
        redis_url=None,
        kds_poll_interval_secs=0.05,
        kds_page_size=10,
        storage_retry_backoff_secs=0,
    )
