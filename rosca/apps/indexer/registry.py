"""
Dynamic contract registry.

Starts with the factory only; pool addresses are added as their
``PoolCreated`` events are applied. The in-memory set is the one the log
poller reads, ``WatchedContract`` rows make it survive restarts.
"""

import logging
from typing import Dict, List, Optional

from rosca.apps.indexer.models import WatchedContract

logger = logging.getLogger(__name__)


class ContractRegistry:
    def __init__(self, factory_address: str, factory_block: int = 0):
        self.factory_address = factory_address.lower()
        self.factory_block = factory_block
        self._kinds: Dict[str, str] = {self.factory_address: WatchedContract.KIND_FACTORY}

    def load(self) -> "ContractRegistry":
        WatchedContract.objects.get_or_create(
            address=self.factory_address,
            defaults={
                "kind": WatchedContract.KIND_FACTORY,
                "discovered_at_block": self.factory_block,
            },
        )
        for row in WatchedContract.objects.all():
            self._kinds[row.address] = row.kind
        logger.info(f"Registry loaded: {len(self._kinds)} watched contracts")
        return self

    def watch(self, address: str, block_number: int = 0) -> bool:
        """
        Add a pool address to the watched set.

        Must run inside the transaction that inserts the Pool row.
        Returns True when the address was not watched before.
        """
        address = address.lower()
        if address in self._kinds:
            return False
        WatchedContract.objects.get_or_create(
            address=address,
            defaults={"kind": WatchedContract.KIND_POOL, "discovered_at_block": block_number},
        )
        self._kinds[address] = WatchedContract.KIND_POOL
        logger.info(f"Watching pool={address} from block={block_number}")
        return True

    def forget(self, address: str) -> None:
        # Used when the enclosing transaction rolled back after watch().
        address = address.lower()
        if address == self.factory_address:
            return
        self._kinds.pop(address, None)

    def is_watched(self, address: str) -> bool:
        return address.lower() in self._kinds

    def kind_of(self, address: str) -> Optional[str]:
        return self._kinds.get(address.lower())

    def addresses(self) -> List[str]:
        return sorted(self._kinds)

    def pool_addresses(self) -> List[str]:
        return sorted(a for a, k in self._kinds.items() if k == WatchedContract.KIND_POOL)

    def __len__(self):
        return len(self._kinds)
