"""
Draw scheduler

For every pool the factory knows about, read live chain state and trigger
the draw once the pool's current period is over. Eligibility checks read
lazily: a later check only runs when every earlier one passed.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable

from rosca.apps.automation.services.pool_factory import PoolFactoryService
from rosca.apps.automation.services.savings_pool import SavingsPoolService
from rosca.onchain.exceptions import ChainUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DrawDecision:
    eligible: bool
    reason: str = ""
    # extra detail for the trigger log line
    info: str = ""


@dataclass
class DrawSummary:
    checked: int = 0
    triggered: int = 0
    failed: int = 0
    skipped: int = 0


def format_remaining(seconds: int) -> str:
    hours, rest = divmod(max(0, int(seconds)), 3600)
    return f"{hours}h {rest // 60}m"


def evaluate_draw(pool: SavingsPoolService, now: int) -> DrawDecision:
    """
    Decide whether the pool's draw can be triggered at ``now`` (unix seconds).

    Order: pool is Active, period has ended, no draw pending, current cycle
    not completed. Missing contributions do not block the draw; the contract
    liquidates collateral for them.
    """
    info = pool.get_pool_info()
    if info.state != SavingsPoolService.STATE_ACTIVE:
        return DrawDecision(False, "Pool is not active")

    if now < info.period_end:
        remaining = format_remaining(info.period_end - now)
        return DrawDecision(False, f"Period not ended yet ({remaining} remaining)")

    if pool.get_pending_nonce() != 0:
        return DrawDecision(False, "Draw already pending")

    if pool.is_cycle_completed(info.current_cycle):
        return DrawDecision(False, "Cycle already completed")

    contributed = pool.get_cycle_contribution_count(info.current_cycle)
    detail = ""
    if contributed < info.max_members:
        detail = f" ({contributed}/{info.max_members} contributed - will auto-liquidate)"
    return DrawDecision(True, info=detail)


class DrawScheduler:
    def __init__(
        self,
        factory: PoolFactoryService,
        pool_service_factory: Callable[[str], SavingsPoolService],
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
        tx_delay: float = 2.0,
        explorer_tx_url: str = "",
    ):
        self.factory = factory
        self.pool_service_factory = pool_service_factory
        self.clock = clock
        self.sleep = sleep
        self.tx_delay = tx_delay
        self.explorer_tx_url = explorer_tx_url

    @classmethod
    def from_settings(cls, client) -> "DrawScheduler":
        from django.conf import settings

        return cls(
            factory=PoolFactoryService(client),
            pool_service_factory=lambda address: SavingsPoolService(client, address),
            tx_delay=settings.DRAW_TX_DELAY_SECONDS,
            explorer_tx_url=settings.EXPLORER_TX_URL,
        )

    def run_once(self) -> DrawSummary:
        """
        One pass over all factory pools.

        Raises:
            ChainUnavailable: both RPC endpoints failed; the pass is abandoned
        """
        pools = self.factory.get_pool_addresses()
        logger.info(f"Draw check started pools={len(pools)}")
        summary = DrawSummary()

        for position, address in enumerate(pools, start=1):
            summary.checked += 1
            pool = self.pool_service_factory(address)
            try:
                decision = evaluate_draw(pool, int(self.clock()))
            except ChainUnavailable:
                raise
            except Exception as e:
                logger.warning(f"[{position}/{len(pools)}] pool={address} skipped reason=Error: {e}")
                summary.skipped += 1
                continue

            if not decision.eligible:
                logger.info(f"[{position}/{len(pools)}] pool={address} skipped reason={decision.reason}")
                summary.skipped += 1
                continue

            logger.info(f"[{position}/{len(pools)}] pool={address} draw due{decision.info}")
            try:
                tx = pool.auto_draw()
            except ChainUnavailable:
                raise
            except Exception as e:
                logger.error(f"Draw failed pool={address}: {e}")
                summary.failed += 1
            else:
                summary.triggered += 1
                logger.info(f"Draw triggered pool={address} tx={tx['tx_hash']}")
                if self.explorer_tx_url:
                    logger.info(f"Explorer: {self.explorer_tx_url.format(tx_hash=tx['tx_hash'])}")

            self.sleep(self.tx_delay)

        logger.info(
            f"Draw check finished checked={summary.checked} triggered={summary.triggered} "
            f"failed={summary.failed} skipped={summary.skipped}"
        )
        return summary
