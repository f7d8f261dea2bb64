import asyncio
import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from orderflow.domain import OrderStatus
from orderflow.kds import BoardHub, QueueView, RefreshCoordinator
from orderflow.kds import broadcast


class CountingFetch:
    def __init__(self) -> None:
        self.triggers = 0

    async def __call__(self, status, spec):
        self.triggers += 1
        return QueueView(status, (), 0, spec.page, spec.size)


async def _eventually(predicate, timeout=2.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


def test_channel_and_decode():
    assert broadcast.channel("r1") == "rt:kds:r1"
    assert broadcast.decode({"data": b'{"reason": "mutation"}'}) == {"reason": "mutation"}
    assert broadcast.decode({"data": "not json"}) is None
    assert broadcast.decode({"data": "[1, 2]"}) is None


@pytest.mark.anyio
async def test_publish_payload(fake_redis):
    pubsub = fake_redis.pubsub()
    await pubsub.subscribe("rt:kds:r1")
    await broadcast.publish(fake_redis, "r1", "mutation", "abc")
    message = None
    for _ in range(20):
        message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=0.1)
        if message:
            break
    await pubsub.aclose()
    assert json.loads(message["data"]) == {"reason": "mutation", "origin": "abc"}


@pytest.mark.anyio
async def test_invalidation_reaches_sessions_in_other_processes(fake_redis):
    local, remote = BoardHub(fake_redis), BoardHub(fake_redis)
    fetch = CountingFetch()
    coordinator = RefreshCoordinator(fetch, statuses=[OrderStatus.PENDING], interval=60)

    async with local.session("r1", coordinator):
        await _eventually(lambda: fetch.triggers == 1)
        await asyncio.sleep(0.05)

        await remote.invalidate("r1", reason="mutation")
        await _eventually(lambda: fetch.triggers == 2)

    await local.close()
    await remote.close()


@pytest.mark.anyio
async def test_own_invalidations_are_not_replayed(fake_redis):
    hub = BoardHub(fake_redis)
    fetch = CountingFetch()
    coordinator = RefreshCoordinator(fetch, statuses=[OrderStatus.PENDING], interval=60)

    async with hub.session("r1", coordinator):
        await _eventually(lambda: fetch.triggers == 1)
        await asyncio.sleep(0.05)
        await hub.invalidate("r1")
        assert fetch.triggers == 2
        await asyncio.sleep(0.2)
        assert fetch.triggers == 2

    await hub.close()


@pytest.mark.anyio
async def test_listener_stops_with_last_session(fake_redis):
    hub = BoardHub(fake_redis)
    first = RefreshCoordinator(CountingFetch(), interval=60)
    second = RefreshCoordinator(CountingFetch(), interval=60)

    await hub.attach("r1", first)
    await hub.attach("r1", second)
    listener = hub._listeners["r1"]
    await hub.detach("r1", first)
    assert not listener.done()
    await hub.detach("r1", second)
    assert listener.done()
    assert hub.sessions("r1") == 0


@pytest.mark.anyio
async def test_publish_failure_does_not_fail_invalidation():
    class DownRedis:
        async def publish(self, channel, payload):
            raise RedisConnectionError("redis down")

    hub = BoardHub(DownRedis())
    await hub.invalidate("r1", reason="mutation")
