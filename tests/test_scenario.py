"""
Five-member pool from creation to the end of its first cycle: projection,
live-state draw decision, and projection again after the draw's events.
"""

import pytest

from rosca.apps.automation.draw_scheduler import DrawScheduler
from rosca.apps.pools.models import Cycle, Member, Pool, PoolState, composite_key
from tests.automation.fakes import FakeFactory, FakePool
from tests.conftest import MEMBERS, POOL, WINNER, make_event, pool_created

pytestmark = pytest.mark.django_db

T = 1_700_100_000
PERIOD = 2_592_000


def test_five_member_pool_first_cycle(ingestor):
    ingestor.apply(pool_created(max_members=5, contributionPerPeriod=50_000_000, periodDuration=PERIOD))
    for block, member in enumerate(MEMBERS, start=1001):
        ingestor.apply(make_event("Joined", POOL, block=block, member=member, contribution=250_000_000))
    ingestor.apply(make_event("PoolStarted", POOL, block=1010, timestamp=T, startTime=T, totalCycles=5))

    pool = Pool.objects.get(pk=POOL)
    assert Member.objects.filter(pool_id=POOL).count() == 5
    assert (pool.state, pool.current_cycle, pool.cycle_start_time) == (PoolState.ACTIVE, 0, T)

    # live chain view of the same pool
    chain_pool = FakePool(POOL, cycle_start_time=T, period_duration=PERIOD, contributed=5)
    before = DrawScheduler(
        factory=FakeFactory([POOL]),
        pool_service_factory=lambda address: chain_pool,
        clock=lambda: T + PERIOD - 1,
        sleep=lambda s: None,
    ).run_once()
    due = DrawScheduler(
        factory=FakeFactory([POOL]),
        pool_service_factory=lambda address: chain_pool,
        clock=lambda: T + PERIOD,
        sleep=lambda s: None,
    ).run_once()

    assert before.triggered == 0
    assert due.triggered == 1
    assert chain_pool.draws == 1

    draw_time = T + PERIOD + 30
    ingestor.ingest(
        [
            make_event("WinnerSelected", POOL, block=2000, timestamp=draw_time, cycle=0, winner=WINNER, prize=250_000_000),
            make_event("CycleEnded", POOL, block=2000, timestamp=draw_time, cycle=0),
        ]
    )

    pool.refresh_from_db()
    assert pool.current_cycle == 1
    assert pool.cycle_start_time == draw_time
    cycle = Cycle.objects.get(pk=composite_key(POOL, 0))
    assert cycle.winner == WINNER
    assert cycle.prize == 250_000_000
