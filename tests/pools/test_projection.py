import pytest

from rosca.apps.pools.lifecycle import Transition, check_transition
from rosca.apps.pools.models import Cycle, Pool, PoolState, composite_key
from rosca.apps.pools.projection import get_by_key, insert_if_absent, update_by_key

pytestmark = pytest.mark.django_db

POOL = "0x00000000000000000000000000000000000a11ce"


def make_pool(**overrides):
    fields = dict(
        creator="0x000000000000000000000000000000000000c0de",
        name="Circle",
        max_members=3,
        contribution_per_period=10_000_000,
        period_duration=86_400,
        yield_bonus_split=20,
        total_cycles=3,
        created_at_block=1,
        created_at_timestamp=1,
    )
    fields.update(overrides)
    return insert_if_absent(Pool, POOL, **fields)


def test_composite_key_lowercases_and_joins():
    assert composite_key("0xABC", 3, "0xDeF") == "0xabc|3|0xdef"


def test_insert_if_absent_keeps_first_row():
    _, created = make_pool(name="First")
    row, created_again = make_pool(name="Second")

    assert created is True
    assert created_again is False
    assert row.name == "First"
    assert Pool.objects.get(pk=POOL).name == "First"


def test_update_by_key_merges_named_fields():
    make_pool()

    row = update_by_key(Pool, POOL, state=PoolState.ACTIVE, cycle_start_time=99)

    stored = get_by_key(Pool, POOL)
    assert row.state == PoolState.ACTIVE
    assert stored.cycle_start_time == 99
    assert stored.name == "Circle"


def test_update_by_key_missing_row_returns_none():
    assert update_by_key(Cycle, composite_key(POOL, 0), prize=1) is None
    assert get_by_key(Cycle, composite_key(POOL, 0)) is None


@pytest.mark.parametrize(
    "current,target,expected",
    [
        (PoolState.OPEN, PoolState.ACTIVE, Transition.APPLY),
        (PoolState.ACTIVE, PoolState.COMPLETED, Transition.APPLY),
        (PoolState.ACTIVE, PoolState.ACTIVE, Transition.NOOP),
        (PoolState.COMPLETED, PoolState.COMPLETED, Transition.NOOP),
        (PoolState.ACTIVE, PoolState.OPEN, Transition.REJECT),
        (PoolState.COMPLETED, PoolState.ACTIVE, Transition.REJECT),
        (PoolState.OPEN, PoolState.COMPLETED, Transition.REJECT),
        ("Active", PoolState.COMPLETED, Transition.APPLY),
    ],
)
def test_lifecycle_transitions(current, target, expected):
    assert check_transition(current, target) is expected
