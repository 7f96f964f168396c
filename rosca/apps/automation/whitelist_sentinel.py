"""
Whitelist sentinel

Makes sure every factory pool is registered with the randomness oracle's
deposit contract, registering the ones that are not.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable

from rosca.apps.automation.services.pool_factory import PoolFactoryService
from rosca.apps.automation.services.vrf_deposit import VrfDepositService
from rosca.onchain.exceptions import ChainUnavailable

logger = logging.getLogger(__name__)


@dataclass
class WhitelistSummary:
    succeeded: int = 0
    failed: int = 0
    already_registered: int = 0

    @property
    def total(self) -> int:
        return self.succeeded + self.failed + self.already_registered


class WhitelistSentinel:
    def __init__(
        self,
        factory: PoolFactoryService,
        deposit: VrfDepositService,
        callback_gas_price: int,
        callback_gas_limit: int,
        sleep: Callable[[float], None] = time.sleep,
        tx_delay: float = 1.0,
        explorer_tx_url: str = "",
    ):
        self.factory = factory
        self.deposit = deposit
        self.callback_gas_price = callback_gas_price
        self.callback_gas_limit = callback_gas_limit
        self.sleep = sleep
        self.tx_delay = tx_delay
        self.explorer_tx_url = explorer_tx_url

    @classmethod
    def from_settings(cls, client) -> "WhitelistSentinel":
        from django.conf import settings

        return cls(
            factory=PoolFactoryService(client),
            deposit=VrfDepositService(client),
            callback_gas_price=settings.CALLBACK_GAS_PRICE,
            callback_gas_limit=settings.CALLBACK_GAS_LIMIT,
            tx_delay=settings.WHITELIST_TX_DELAY_SECONDS,
            explorer_tx_url=settings.EXPLORER_TX_URL,
        )

    def run_once(self) -> WhitelistSummary:
        """
        One pass over all factory pools. Per-pool errors count as failures;
        only a lost RPC connection abandons the pass.
        """
        summary = WhitelistSummary()
        client_wallet = self.factory.get_client_wallet_address()
        count = self.factory.get_pool_count()
        logger.info(f"Whitelist check started pools={count} client={client_wallet}")

        pools = []
        for index in range(count):
            try:
                pools.append(self.factory.get_pool(index))
            except ChainUnavailable:
                raise
            except Exception as e:
                logger.error(f"Error fetching pool index={index}: {e}")
                summary.failed += 1

        for position, address in enumerate(pools):
            try:
                if self.deposit.is_contract_whitelisted(client_wallet, address):
                    logger.info(f"Already whitelisted pool={address}")
                    summary.already_registered += 1
                    continue

                logger.info(f"Whitelisting pool={address}")
                tx = self.deposit.add_contract_to_whitelist(
                    address, self.callback_gas_price, self.callback_gas_limit
                )
                summary.succeeded += 1
                logger.info(
                    f"Pool whitelisted pool={address} tx={tx['tx_hash']} block={tx['block_number']}"
                )
                if self.explorer_tx_url:
                    logger.info(f"Explorer: {self.explorer_tx_url.format(tx_hash=tx['tx_hash'])}")
            except ChainUnavailable:
                raise
            except Exception as e:
                logger.error(f"Failed to whitelist pool={address}: {e}")
                summary.failed += 1

            if position < len(pools) - 1:
                self.sleep(self.tx_delay)

        logger.info(
            f"Whitelist check finished succeeded={summary.succeeded} failed={summary.failed} "
            f"already_registered={summary.already_registered} total={len(pools)}"
        )
        return summary
