import threading

import pytest

from rosca.onchain.client import signer_lock_ttl
from rosca.onchain.exceptions import SignerLockNotAcquired
from rosca.onchain.signer_lock import (
    LocalSignerLock,
    RedisSignerLock,
    SingleFlight,
    build_signer_lock,
)
from tests.automation.fakes import FakeRedis

ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


def test_local_lock_serialises_same_address():
    lock = LocalSignerLock()
    inside = threading.Event()
    release = threading.Event()
    order = []

    def first():
        with lock.hold(ADDRESS):
            inside.set()
            release.wait(5)
            order.append("first")

    def second():
        with lock.hold(ADDRESS.lower()):
            order.append("second")

    t1 = threading.Thread(target=first)
    t1.start()
    inside.wait(5)
    t2 = threading.Thread(target=second)
    t2.start()
    release.set()
    t1.join(5)
    t2.join(5)

    assert order == ["first", "second"]


def test_redis_lock_releases_own_token():
    r = FakeRedis()
    lock = RedisSignerLock(r=r, ttl=30)

    with lock.hold(ADDRESS):
        assert len(r.values) == 1

    assert r.values == {}
    assert r.evals[0][0] == f"rosca:signer:lock:{ADDRESS.lower()}"


def test_redis_lock_times_out():
    lock = RedisSignerLock(r=FakeRedis(taken=True), wait_timeout=0)

    with pytest.raises(SignerLockNotAcquired):
        with lock.hold(ADDRESS):
            pass


def test_build_signer_lock():
    assert isinstance(build_signer_lock("local"), LocalSignerLock)
    with pytest.raises(ValueError):
        build_signer_lock("zookeeper")


def test_redis_lock_outlives_every_receipt_wait(settings):
    ttl = signer_lock_ttl(settings.TX_RECEIPT_TIMEOUT)
    r = FakeRedis()
    lock = build_signer_lock("redis", ttl=ttl, r=r)

    with lock.hold(ADDRESS):
        (expiry,) = r.expiries.values()

    assert expiry > 3 * settings.TX_RECEIPT_TIMEOUT
    assert lock.wait_timeout == ttl


def test_single_flight_admits_one_holder():
    r = FakeRedis()
    flight = SingleFlight(r, "trigger_due_draws", ttl=60)

    with flight.hold() as first:
        with flight.hold() as second:
            assert (first, second) == (True, False)

    assert r.values == {}
    with flight.hold() as again:
        assert again is True
