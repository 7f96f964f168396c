"""
PoolFactory Contract Service
Enumerates deployed pools and reads the oracle client identity
"""

from typing import List, Optional
from django.conf import settings
import logging

from rosca.onchain.base_contract import BaseContractService
from rosca.onchain.client import ChainClient
from rosca.onchain.exceptions import ChainUnavailable

logger = logging.getLogger(__name__)


class PoolFactoryService(BaseContractService):
    """Service for interacting with the pool factory contract"""

    def __init__(self, client: ChainClient, address: Optional[str] = None):
        super().__init__(
            client=client,
            contract_address=address or settings.FACTORY_ADDRESS,
            abi_path=settings.POOL_FACTORY_ABI_PATH,
        )

    def get_pool_count(self) -> int:
        """Number of pools deployed by the factory"""
        return int(self.call_read_function('getPoolCount'))

    def get_pool(self, index: int) -> str:
        """Pool address at ``index``"""
        return self.call_read_function('getPool', index)

    def get_pool_addresses(self) -> List[str]:
        """
        All pool addresses, in factory order.

        An index that cannot be read is logged and skipped; a lost RPC
        connection fails the whole enumeration.
        """
        count = self.get_pool_count()
        pools = []
        for index in range(count):
            try:
                pools.append(self.get_pool(index))
            except ChainUnavailable:
                raise
            except Exception as e:
                logger.warning(f"Skipping pool index={index}: {e}")
        return pools

    def get_client_wallet_address(self) -> str:
        """Address the factory registered with the randomness oracle"""
        return self.call_read_function('clientWalletAddress')
