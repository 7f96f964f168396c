import pytest

from rosca.apps.pools.models import (
    Cycle,
    CycleContribution,
    Member,
    Pool,
    PoolState,
    composite_key,
)
from tests.conftest import (
    CREATOR,
    FACTORY,
    MEMBERS,
    POOL,
    WINNER,
    make_event,
    pool_created,
)

pytestmark = pytest.mark.django_db


def snapshot():
    return {
        "pools": list(Pool.objects.order_by("id").values()),
        "members": list(Member.objects.order_by("id").values()),
        "cycles": list(Cycle.objects.order_by("id").values()),
        "contributions": list(CycleContribution.objects.order_by("id").values()),
    }


def start_pool(ingestor, start_time=1_700_100_000, members=MEMBERS):
    for i, member in enumerate(members):
        ingestor.apply(make_event("Joined", POOL, block=1001 + i, member=member, contribution=250_000_000))
    ingestor.apply(
        make_event("PoolStarted", POOL, block=1010, startTime=start_time, totalCycles=len(members))
    )


def test_pool_created_defaults(ingestor, registry):
    assert ingestor.apply(pool_created(poolDescription=""))

    pool = Pool.objects.get(pk=POOL)
    assert pool.state == PoolState.OPEN
    assert pool.current_cycle == 0
    assert pool.total_cycles == 5
    assert pool.cycle_start_time == 0
    assert pool.description == ""
    assert pool.creator == CREATOR
    assert pool.contribution_per_period == 50_000_000
    assert pool.created_at_block == 1000
    assert registry.is_watched(POOL)


def test_pool_created_lowercases_addresses(ingestor):
    ingestor.apply(pool_created(pool=POOL.upper().replace("0X", "0x"), creator=CREATOR.upper()))

    pool = Pool.objects.get()
    assert pool.id == POOL
    assert pool.creator == CREATOR


def test_replaying_stream_is_idempotent(ingestor):
    stream = [
        pool_created(),
        *[
            make_event("Joined", POOL, block=1001, member=m, contribution=250_000_000)
            for m in MEMBERS
        ],
        make_event("PoolStarted", POOL, block=1002, startTime=1_700_100_000, totalCycles=5),
        make_event("Contributed", POOL, block=1003, cycle=0, member=MEMBERS[0], amount=50_000_000),
        make_event("CollateralLiquidated", POOL, block=1004, cycle=0, member=MEMBERS[1], amount=50_000_000),
        make_event("WinnerSelected", POOL, block=1005, cycle=0, winner=WINNER, prize=250_000_000),
        make_event("YieldDistributed", POOL, block=1005, cycle=0, winner=WINNER, yieldBonus=10, compounded=5),
        make_event("CycleEnded", POOL, block=1005, timestamp=1_702_700_000, cycle=0),
    ]
    ingestor.ingest(stream)
    first = snapshot()

    ingestor.ingest(stream)

    assert snapshot() == first
    assert Member.objects.count() == 5
    assert Cycle.objects.count() == 1


def test_pool_started_sets_active_and_start_time(ingestor, created_pool):
    start_pool(ingestor, start_time=1_700_100_000)

    pool = Pool.objects.get(pk=POOL)
    assert pool.state == PoolState.ACTIVE
    assert pool.current_cycle == 0
    assert pool.cycle_start_time == 1_700_100_000


def test_pool_started_twice_does_not_reset_cycle(ingestor, created_pool):
    start_pool(ingestor)
    ingestor.apply(make_event("CycleEnded", POOL, block=1020, timestamp=1_702_000_000, cycle=0))

    ingestor.apply(make_event("PoolStarted", POOL, block=1021, startTime=1, totalCycles=5))

    pool = Pool.objects.get(pk=POOL)
    assert pool.state == PoolState.ACTIVE
    assert pool.current_cycle == 1
    assert pool.cycle_start_time == 1_702_000_000


def test_completed_pool_never_becomes_active_again(ingestor, created_pool):
    start_pool(ingestor)
    ingestor.apply(make_event("PoolCompleted", POOL, block=1030))

    ingestor.apply(make_event("PoolStarted", POOL, block=1031, startTime=5, totalCycles=5))

    assert Pool.objects.get(pk=POOL).state == PoolState.COMPLETED


def test_open_pool_cannot_complete(ingestor, created_pool):
    assert ingestor.apply(make_event("PoolCompleted", POOL, block=1030))

    assert Pool.objects.get(pk=POOL).state == PoolState.OPEN


def test_yield_distributed_overwrites_prize(ingestor, created_pool):
    ingestor.apply(make_event("WinnerSelected", POOL, cycle=0, winner=WINNER, prize=250_000_000))
    ingestor.apply(
        make_event(
            "YieldDistributed",
            POOL,
            timestamp=1_700_000_500,
            cycle=0,
            winner=WINNER,
            yieldBonus=10_000_000,
            compounded=5_000_000,
        )
    )

    rows = Cycle.objects.filter(pool_id=POOL)
    assert rows.count() == 1
    cycle = rows.get()
    assert cycle.id == composite_key(POOL, 0)
    assert cycle.yield_bonus == 10_000_000
    assert cycle.compounded == 5_000_000
    assert cycle.prize == 15_000_000
    assert cycle.timestamp == 1_700_000_500


def test_winner_selected_defaults_yield_fields(ingestor, created_pool):
    ingestor.apply(make_event("WinnerSelected", POOL, cycle=2, winner=WINNER.upper().replace("0X", "0x"), prize=7))

    cycle = Cycle.objects.get(pk=composite_key(POOL, 2))
    assert cycle.winner == WINNER
    assert cycle.yield_bonus == 0
    assert cycle.compounded == 0


def test_yield_distributed_without_winner_is_skipped(ingestor, created_pool):
    applied = ingestor.apply(
        make_event("YieldDistributed", POOL, cycle=3, winner=WINNER, yieldBonus=1, compounded=1)
    )

    assert applied is False
    assert not Cycle.objects.exists()


def test_cycle_ended_uses_event_timestamp(ingestor, created_pool):
    start_pool(ingestor)
    Pool.objects.filter(pk=POOL).update(current_cycle=2)

    ingestor.apply(make_event("CycleEnded", POOL, block=1100, timestamp=1_705_555_555, cycle=2))

    pool = Pool.objects.get(pk=POOL)
    assert pool.current_cycle == 3
    assert pool.cycle_start_time == 1_705_555_555


def test_stale_cycle_ended_is_ignored(ingestor, created_pool):
    start_pool(ingestor)
    ingestor.apply(make_event("CycleEnded", POOL, block=1100, timestamp=1_705_000_000, cycle=1))

    ingestor.apply(make_event("CycleEnded", POOL, block=1101, timestamp=1_706_000_000, cycle=0))

    pool = Pool.objects.get(pk=POOL)
    assert pool.current_cycle == 2
    assert pool.cycle_start_time == 1_705_000_000


def test_contributed_and_liquidated_share_key_space(ingestor, created_pool):
    ingestor.apply(make_event("Contributed", POOL, cycle=0, member=MEMBERS[0], amount=50_000_000))
    ingestor.apply(make_event("CollateralLiquidated", POOL, cycle=0, member=MEMBERS[1], amount=50_000_000))
    ingestor.apply(make_event("CollateralLiquidated", POOL, cycle=0, member=MEMBERS[0], amount=1))

    paid = CycleContribution.objects.get(pk=composite_key(POOL, 0, MEMBERS[0]))
    liquidated = CycleContribution.objects.get(pk=composite_key(POOL, 0, MEMBERS[1]))
    assert paid.is_liquidated is False
    assert paid.amount == 50_000_000
    assert liquidated.is_liquidated is True
    assert CycleContribution.objects.count() == 2


def test_member_count_never_exceeds_max(ingestor):
    ingestor.apply(pool_created(max_members=2))
    results = [
        ingestor.apply(make_event("Joined", POOL, member=m, contribution=1)) for m in MEMBERS[:3]
    ]

    assert results == [True, True, False]
    assert Member.objects.filter(pool_id=POOL).count() == 2


def test_duplicate_join_is_noop(ingestor, created_pool):
    ingestor.apply(make_event("Joined", POOL, block=1001, member=MEMBERS[0], contribution=1))
    ingestor.apply(make_event("Joined", POOL, block=1002, member=MEMBERS[0], contribution=999))

    member = Member.objects.get()
    assert member.contribution == 1
    assert member.joined_at_block == 1001


def test_events_from_unwatched_address_are_skipped(ingestor):
    other = "0x0000000000000000000000000000000000000bad"

    assert ingestor.apply(make_event("Joined", other, member=MEMBERS[0], contribution=1)) is False
    assert not Member.objects.exists()


def test_pool_event_from_factory_is_skipped(ingestor):
    assert ingestor.apply(make_event("Joined", FACTORY, member=MEMBERS[0], contribution=1)) is False


def test_unknown_event_is_skipped(ingestor, created_pool):
    assert ingestor.apply(make_event("OwnershipTransferred", POOL)) is False


def test_malformed_event_is_skipped_and_stream_continues(ingestor, created_pool):
    events = [
        make_event("Joined", POOL, contribution=1),  # no member
        make_event("Joined", POOL, member=MEMBERS[0], contribution=1),
    ]

    assert ingestor.ingest(events) == 1
    assert Member.objects.count() == 1


def test_failed_pool_created_does_not_watch(ingestor, registry):
    bad = pool_created(maxMembers="five")

    assert ingestor.apply(bad) is False
    assert not registry.is_watched(POOL)
    assert not Pool.objects.exists()


def test_uint256_amounts_beyond_int64_are_stored(ingestor, registry):
    assert ingestor.apply(pool_created(contributionPerPeriod=2**64, periodDuration=2**70))

    pool = Pool.objects.get(pk=POOL)
    assert pool.contribution_per_period > 2**63
    assert registry.is_watched(POOL)


def test_out_of_range_start_time_is_skipped(ingestor, created_pool):
    event = make_event("PoolStarted", POOL, block=1010, startTime=2**64, totalCycles=5)

    assert ingestor.apply(event) is False
    assert Pool.objects.get(pk=POOL).state == PoolState.OPEN
    # stream keeps moving
    assert ingestor.apply(make_event("Joined", POOL, member=MEMBERS[0], contribution=1))
