"""
Per-event projection handlers.

Each handler receives one decoded event and the contract registry and writes
the projection through ``insert_if_absent`` / ``update_by_key`` so a replayed
event leaves the store unchanged.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from rosca.apps.indexer.events import ChainEvent
from rosca.apps.indexer.exceptions import ProjectionInconsistency
from rosca.apps.indexer.models import WatchedContract
from rosca.apps.indexer.registry import ContractRegistry
from rosca.apps.pools.lifecycle import Transition, check_transition
from rosca.apps.pools.models import (
    Cycle,
    CycleContribution,
    Member,
    Pool,
    PoolState,
    composite_key,
)
from rosca.apps.pools.projection import insert_if_absent, update_by_key

logger = logging.getLogger(__name__)

Handler = Callable[[ChainEvent, ContractRegistry], None]


@dataclass
class HandlerMeta:
    fn: Handler
    name: str
    source: str  # WatchedContract kind the event must come from


_handlers: Dict[str, HandlerMeta] = {}


def handles(name: str, *, source: str = WatchedContract.KIND_POOL):
    """Decorator: @handles('Joined', source='pool')"""

    def _decorator(fn: Handler) -> Handler:
        _handlers[name] = HandlerMeta(fn=fn, name=name, source=source)
        return fn

    return _decorator


def get_handler(name: str) -> Optional[HandlerMeta]:
    return _handlers.get(name)


def all_handlers() -> Dict[str, HandlerMeta]:
    return dict(_handlers)


# ---------------------------
# Helpers
# ---------------------------

def _locked_pool(event: ChainEvent) -> Pool:
    pool = Pool.objects.select_for_update().filter(pk=event.source).first()
    if pool is None:
        raise ProjectionInconsistency(
            f"{event.name} for unknown pool={event.source} block={event.block_number}"
        )
    return pool


def _require_pool(event: ChainEvent) -> str:
    if not Pool.objects.filter(pk=event.source).exists():
        raise ProjectionInconsistency(
            f"{event.name} for unknown pool={event.source} block={event.block_number}"
        )
    return event.source


def _move_state(event: ChainEvent, pool: Pool, target: str, **fields) -> bool:
    outcome = check_transition(pool.state, target)
    if outcome is Transition.NOOP:
        logger.debug(f"{event.name} replay ignored pool={pool.id} state={pool.state}")
        return False
    if outcome is Transition.REJECT:
        logger.warning(
            f"Illegal transition ignored pool={pool.id} {pool.state}->{target} "
            f"event={event.name} block={event.block_number}"
        )
        return False
    update_by_key(Pool, pool.id, state=target, **fields)
    logger.info(f"Pool state pool={pool.id} {pool.state}->{target}")
    return True


# ---------------------------
# Factory events
# ---------------------------

@handles("PoolCreated", source=WatchedContract.KIND_FACTORY)
def on_pool_created(event: ChainEvent, registry: ContractRegistry) -> None:
    args = event.args
    pool_address = args["pool"].lower()
    max_members = int(args["maxMembers"])

    _, created = insert_if_absent(
        Pool,
        pool_address,
        creator=args["creator"].lower(),
        name=args["poolName"],
        description=args.get("poolDescription") or "",
        max_members=max_members,
        contribution_per_period=int(args["contributionPerPeriod"]),
        period_duration=int(args["periodDuration"]),
        yield_bonus_split=int(args["yieldBonusSplit"]),
        state=PoolState.OPEN,
        current_cycle=0,
        total_cycles=max_members,
        cycle_start_time=0,
        created_at_block=event.block_number,
        created_at_timestamp=event.block_timestamp,
    )
    if created:
        logger.info(f"Pool created pool={pool_address} members={max_members}")

    # last, so the watch is only recorded once the row write succeeded
    registry.watch(pool_address, event.block_number)


# ---------------------------
# Pool events
# ---------------------------

@handles("Joined")
def on_joined(event: ChainEvent, registry: ContractRegistry) -> None:
    pool = _locked_pool(event)
    member = event.args["member"].lower()
    key = composite_key(pool.id, member)

    if Member.objects.filter(pk=key).exists():
        logger.debug(f"Member {key} already projected")
        return

    joined = Member.objects.filter(pool_id=pool.id).count()
    if joined >= pool.max_members:
        raise ProjectionInconsistency(
            f"Joined would exceed maxMembers pool={pool.id} member={member} "
            f"members={joined}/{pool.max_members}"
        )

    insert_if_absent(
        Member,
        key,
        pool_id=pool.id,
        address=member,
        contribution=int(event.args["contribution"]),
        joined_at_block=event.block_number,
        joined_at_timestamp=event.block_timestamp,
    )


@handles("PoolStarted")
def on_pool_started(event: ChainEvent, registry: ContractRegistry) -> None:
    pool = _locked_pool(event)
    _move_state(
        event,
        pool,
        PoolState.ACTIVE,
        current_cycle=0,
        total_cycles=int(event.args["totalCycles"]),
        cycle_start_time=int(event.args["startTime"]),
    )


@handles("CycleEnded")
def on_cycle_ended(event: ChainEvent, registry: ContractRegistry) -> None:
    pool = _locked_pool(event)
    next_cycle = int(event.args["cycle"]) + 1

    if next_cycle < pool.current_cycle:
        logger.warning(
            f"Stale CycleEnded ignored pool={pool.id} cycle={next_cycle - 1} "
            f"current={pool.current_cycle}"
        )
        return

    if pool.state != PoolState.ACTIVE:
        if next_cycle == pool.current_cycle:
            logger.debug(f"CycleEnded replay ignored pool={pool.id} state={pool.state}")
            return
        raise ProjectionInconsistency(
            f"CycleEnded on {pool.state} pool={pool.id} cycle={next_cycle - 1}"
        )

    if next_cycle > pool.total_cycles:
        raise ProjectionInconsistency(
            f"CycleEnded past totalCycles pool={pool.id} cycle={next_cycle - 1} "
            f"total={pool.total_cycles}"
        )

    # next period starts at the block that ended this one, not at a schedule boundary
    update_by_key(
        Pool,
        pool.id,
        current_cycle=next_cycle,
        cycle_start_time=event.block_timestamp,
    )


@handles("PoolCompleted")
def on_pool_completed(event: ChainEvent, registry: ContractRegistry) -> None:
    pool = _locked_pool(event)
    _move_state(event, pool, PoolState.COMPLETED)


def _record_contribution(event: ChainEvent, member_field: str, liquidated: bool) -> None:
    pool_id = _require_pool(event)
    cycle = int(event.args["cycle"])
    member = event.args[member_field].lower()
    key = composite_key(pool_id, cycle, member)

    row, created = insert_if_absent(
        CycleContribution,
        key,
        pool_id=pool_id,
        cycle_index=cycle,
        member_address=member,
        amount=int(event.args["amount"]),
        is_liquidated=liquidated,
        timestamp=event.block_timestamp,
    )
    if not created and row.is_liquidated != liquidated:
        logger.warning(
            f"Contribution {key} already recorded with is_liquidated={row.is_liquidated}, "
            f"{event.name} ignored"
        )


@handles("Contributed")
def on_contributed(event: ChainEvent, registry: ContractRegistry) -> None:
    _record_contribution(event, "member", liquidated=False)


@handles("CollateralLiquidated")
def on_collateral_liquidated(event: ChainEvent, registry: ContractRegistry) -> None:
    _record_contribution(event, "member", liquidated=True)


@handles("WinnerSelected")
def on_winner_selected(event: ChainEvent, registry: ContractRegistry) -> None:
    pool_id = _require_pool(event)
    cycle = int(event.args["cycle"])

    insert_if_absent(
        Cycle,
        composite_key(pool_id, cycle),
        pool_id=pool_id,
        index=cycle,
        winner=event.args["winner"].lower(),
        prize=int(event.args["prize"]),
        yield_bonus=0,
        compounded=0,
        timestamp=event.block_timestamp,
    )


@handles("YieldDistributed")
def on_yield_distributed(event: ChainEvent, registry: ContractRegistry) -> None:
    cycle = int(event.args["cycle"])
    key = composite_key(event.source, cycle)
    yield_bonus = int(event.args["yieldBonus"])
    compounded = int(event.args["compounded"])

    # NOTE: prize is overwritten with yieldBonus + compounded, replacing the
    # amount from WinnerSelected. Dashboards read it this way.
    row = update_by_key(
        Cycle,
        key,
        yield_bonus=yield_bonus,
        compounded=compounded,
        prize=yield_bonus + compounded,
        timestamp=event.block_timestamp,
    )
    if row is None:
        raise ProjectionInconsistency(
            f"YieldDistributed before WinnerSelected cycle={key} block={event.block_number}"
        )
