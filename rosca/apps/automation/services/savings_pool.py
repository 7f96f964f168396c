"""
SavingsPool Contract Service
Live reads used to decide whether a pool's draw is due, and the draw trigger
"""

from dataclasses import dataclass
from typing import Any, Dict
from django.conf import settings
import logging

from rosca.onchain.base_contract import BaseContractService
from rosca.onchain.client import ChainClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoolInfo:
    state: int
    max_members: int
    current_members: int
    contribution_per_period: int
    period_duration: int
    yield_bonus_split: int
    current_cycle: int
    total_cycles: int
    cycle_start_time: int

    @classmethod
    def from_tuple(cls, raw) -> "PoolInfo":
        return cls(
            state=int(raw[0]),
            max_members=int(raw[1]),
            current_members=int(raw[2]),
            contribution_per_period=int(raw[3]),
            period_duration=int(raw[4]),
            yield_bonus_split=int(raw[5]),
            current_cycle=int(raw[6]),
            total_cycles=int(raw[7]),
            cycle_start_time=int(raw[8]),
        )

    @property
    def period_end(self) -> int:
        return self.cycle_start_time + self.period_duration


class SavingsPoolService(BaseContractService):
    """Service for interacting with one pool contract"""

    # Pool states (contract enum)
    STATE_OPEN = 0
    STATE_ACTIVE = 1
    STATE_COMPLETED = 2

    STATE_NAMES = {
        0: "Open",
        1: "Active",
        2: "Completed",
    }

    def __init__(self, client: ChainClient, address: str):
        super().__init__(
            client=client,
            contract_address=address,
            abi_path=settings.SAVINGS_POOL_ABI_PATH,
        )

    # ============================================================
    # READ-ONLY FUNCTIONS
    # ============================================================

    def get_pool_info(self) -> PoolInfo:
        return PoolInfo.from_tuple(self.call_read_function('getPoolInfo'))

    def get_pending_nonce(self) -> int:
        """Non-zero while a randomness request for the draw is in flight"""
        return int(self.call_read_function('pendingNonce'))

    def is_cycle_completed(self, cycle: int) -> bool:
        return bool(self.call_read_function('cycleCompleted', cycle))

    def get_cycle_contribution_count(self, cycle: int) -> int:
        return int(self.call_read_function('cycleContributionCount', cycle))

    # ============================================================
    # WRITE FUNCTIONS
    # ============================================================

    def auto_draw(self) -> Dict[str, Any]:
        """
        Trigger the draw for the current cycle.
        Missing contributions are liquidated from collateral by the contract.
        """
        logger.info(f"Submitting autoDraw pool={self.contract_address}")
        return self.send('autoDraw')
