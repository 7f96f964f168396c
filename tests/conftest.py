import itertools

import pytest

FACTORY = "0x5117711063b5cd297e118e28e29ed9628eea9b28"
POOL = "0x00000000000000000000000000000000000a11ce"
CREATOR = "0x000000000000000000000000000000000000c0de"
MEMBERS = [f"0x{'0' * 39}{i}" for i in range(1, 6)]
WINNER = "0x0000000000000000000000000000000000000ddd"

_log_index = itertools.count()


def make_event(name, address, block=1000, timestamp=1_700_000_000, log_index=None, **args):
    from rosca.apps.indexer.events import ChainEvent

    return ChainEvent(
        name=name,
        address=address,
        args=args,
        block_number=block,
        block_timestamp=timestamp,
        log_index=next(_log_index) if log_index is None else log_index,
        tx_hash=f"0x{block:064x}",
    )


def pool_created(pool=POOL, max_members=5, block=1000, timestamp=1_700_000_000, **overrides):
    args = dict(
        pool=pool,
        creator=CREATOR,
        maxMembers=max_members,
        contributionPerPeriod=50_000_000,
        periodDuration=2_592_000,
        yieldBonusSplit=50,
        poolName="Family Circle",
        poolDescription="Monthly savings",
    )
    args.update(overrides)
    return make_event("PoolCreated", FACTORY, block=block, timestamp=timestamp, **args)


@pytest.fixture
def registry(db):
    from rosca.apps.indexer.registry import ContractRegistry

    return ContractRegistry(FACTORY, factory_block=100).load()


@pytest.fixture
def ingestor(registry):
    from rosca.apps.indexer.ingestor import EventIngestor

    return EventIngestor(registry)


@pytest.fixture
def created_pool(ingestor):
    """A pool that exists in the projection and is watched."""
    assert ingestor.apply(pool_created())
    return POOL
