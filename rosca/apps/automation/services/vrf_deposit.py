"""
VRF Deposit Contract Service
Whitelists pool contracts as consumers of the randomness oracle
"""

from typing import Any, Dict, Optional
from django.conf import settings
import logging

from rosca.onchain.base_contract import BaseContractService
from rosca.onchain.client import ChainClient

logger = logging.getLogger(__name__)


class VrfDepositService(BaseContractService):
    """Service for interacting with the oracle deposit contract"""

    def __init__(self, client: ChainClient, address: Optional[str] = None):
        super().__init__(
            client=client,
            contract_address=address or settings.VRF_DEPOSIT_ADDRESS,
            abi_path=settings.VRF_DEPOSIT_ABI_PATH,
        )

    def is_contract_whitelisted(self, client_address: str, contract_address: str) -> bool:
        return bool(
            self.call_read_function(
                'isContractWhitelisted',
                self.checksum_address(client_address),
                self.checksum_address(contract_address),
            )
        )

    def add_contract_to_whitelist(
        self, contract_address: str, callback_gas_price: int, callback_gas_limit: int
    ) -> Dict[str, Any]:
        """
        Register ``contract_address`` under the signer's client account

        Args:
            contract_address: Pool to register
            callback_gas_price: Gas price for oracle callbacks (uint128)
            callback_gas_limit: Gas limit for oracle callbacks (uint128)
        """
        return self.send(
            'addContractToWhitelist',
            self.checksum_address(contract_address),
            int(callback_gas_price),
            int(callback_gas_limit),
        )
