"""
Chain client

The one process-owned resource for talking to the chain: a Web3 connection
that fails over from the primary to the fallback RPC endpoint, plus the single
automation account used to sign transactions.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

import requests
from eth_account import Account
from web3 import Web3
from web3.exceptions import ContractLogicError, ProviderConnectionError, Web3RPCError

from .exceptions import ChainUnavailable, TransactionFailed
from .signer_lock import LocalSignerLock, build_signer_lock

logger = logging.getLogger(__name__)

TRANSPORT_ERRORS = (
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
    ProviderConnectionError,
)

# attempts per transaction on nonce conflicts
SEND_MAX_RETRIES = 3


def signer_lock_ttl(receipt_timeout: int, margin: int = 60) -> int:
    """Long enough to cover every receipt wait of one send_transaction call."""
    return SEND_MAX_RETRIES * receipt_timeout + margin


def http_web3(url: str, timeout: int = 30) -> Web3:
    return Web3(Web3.HTTPProvider(url, request_kwargs={"timeout": timeout}))


class ChainClient:
    """Web3 connection with endpoint failover and a serialised signer."""

    def __init__(
        self,
        provider_url: str,
        fallback_url: str = "",
        private_key: str = "",
        request_timeout: int = 30,
        receipt_timeout: int = 120,
        signer_lock=None,
        web3_factory: Optional[Callable[[str, int], Web3]] = None,
    ):
        self.provider_urls: List[str] = [u for u in (provider_url, fallback_url) if u]
        self.request_timeout = request_timeout
        self.receipt_timeout = receipt_timeout
        self.signer_lock = signer_lock or LocalSignerLock()
        self._web3_factory = web3_factory or http_web3
        self._connect_lock = threading.Lock()
        self.web3: Optional[Web3] = None
        self.active_url: Optional[str] = None
        self.account = Account.from_key(private_key) if private_key else None

    @classmethod
    def from_settings(
        cls,
        with_signer: bool = True,
        private_key: Optional[str] = None,
        signer_lock=None,
    ) -> "ChainClient":
        from django.conf import settings

        if private_key is None:
            private_key = settings.AUTOMATION_PRIVATE_KEY if with_signer else ""
        return cls(
            provider_url=settings.WEB3_PROVIDER_URL,
            fallback_url=settings.WEB3_FALLBACK_PROVIDER_URL,
            private_key=private_key,
            request_timeout=settings.WEB3_REQUEST_TIMEOUT,
            receipt_timeout=settings.TX_RECEIPT_TIMEOUT,
            signer_lock=signer_lock
            or build_signer_lock(
                settings.SIGNER_LOCK_BACKEND,
                settings.SIGNER_LOCK_URL,
                ttl=signer_lock_ttl(settings.TX_RECEIPT_TIMEOUT),
            ),
        )

    @property
    def address(self) -> Optional[str]:
        return self.account.address if self.account else None

    @property
    def is_connected(self) -> bool:
        return self.web3 is not None

    # ============================================================
    # LIFECYCLE
    # ============================================================

    def connect(self) -> Web3:
        """
        Probe endpoints in order (primary first) and keep the first that
        answers ``eth_blockNumber``.

        Raises:
            ChainUnavailable: no endpoint answered
        """
        with self._connect_lock:
            last_error: Optional[BaseException] = None
            for position, url in enumerate(self.provider_urls):
                web3 = self._web3_factory(url, self.request_timeout)
                try:
                    web3.eth.block_number
                except TRANSPORT_ERRORS as e:
                    logger.warning(f"RPC endpoint unavailable url={url}: {e}")
                    last_error = e
                    continue
                if position > 0:
                    logger.warning(f"Primary RPC failed, using fallback url={url}")
                self.web3 = web3
                self.active_url = url
                return web3
            self.web3 = None
            self.active_url = None
            raise ChainUnavailable(f"No RPC endpoint reachable: {last_error}")

    def close(self) -> None:
        if self.web3 is not None:
            logger.info(f"Closing chain client url={self.active_url}")
        self.web3 = None
        self.active_url = None

    def __enter__(self) -> "ChainClient":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ============================================================
    # READS
    # ============================================================

    def call(self, fn: Callable[[Web3], Any]) -> Any:
        """
        Run ``fn(web3)`` on the active endpoint; on a transport error
        reconnect (primary, then fallback) and retry once.
        """
        if self.web3 is None:
            self.connect()
        try:
            return fn(self.web3)
        except TRANSPORT_ERRORS as e:
            logger.warning(f"RPC call failed url={self.active_url}: {e}, failing over")
        self.connect()
        try:
            return fn(self.web3)
        except TRANSPORT_ERRORS as e:
            raise ChainUnavailable(f"RPC call failed after failover: {e}") from e

    # ============================================================
    # WRITES
    # ============================================================

    def send_transaction(
        self,
        function,
        value: int = 0,
        gas_multiplier: float = 1.2,
        max_retries: int = SEND_MAX_RETRIES,
    ) -> Dict[str, Any]:
        """
        Build, sign, send a transaction and wait for its receipt, holding the
        signer lock for the whole sequence.

        Args:
            function: Bound contract function (e.g. ``contract.functions.autoDraw()``)
            value: Native token value to send (in wei)
            gas_multiplier: Multiplier for gas estimation (default 1.2 = 20% buffer)
            max_retries: Maximum number of retry attempts for nonce conflicts

        Returns:
            Dict with transaction hash, receipt, gas used and block number

        Raises:
            ContractLogicError: the call reverts (at estimation or execution)
            TransactionFailed: the transaction was mined with status 0
        """
        if self.account is None:
            raise RuntimeError("Chain client has no signing account configured")

        from_address = self.account.address
        last_error = None

        with self.signer_lock.hold(from_address):
            for attempt in range(max_retries):
                web3 = self.web3 or self.connect()
                try:
                    # Get nonce (fresh for each attempt)
                    nonce = web3.eth.get_transaction_count(from_address, "pending")

                    try:
                        estimated_gas = function.estimate_gas(
                            {"from": from_address, "value": value}
                        )
                        gas_limit = int(estimated_gas * gas_multiplier)
                    except ContractLogicError:
                        raise
                    except (ValueError, Web3RPCError) as e:
                        logger.warning(f"Gas estimation failed: {e}. Using default 500000")
                        gas_limit = 500000

                    transaction = function.build_transaction(
                        {
                            "from": from_address,
                            "nonce": nonce,
                            "gas": gas_limit,
                            "gasPrice": web3.eth.gas_price,
                            "value": value,
                            "chainId": web3.eth.chain_id,
                        }
                    )

                    signed_txn = self.account.sign_transaction(transaction)
                    tx_hash = web3.eth.send_raw_transaction(signed_txn.raw_transaction)
                    tx_hex = Web3.to_hex(tx_hash)
                    logger.info(f"Transaction sent: {tx_hex}")

                    receipt = web3.eth.wait_for_transaction_receipt(
                        tx_hash, timeout=self.receipt_timeout
                    )
                    if receipt["status"] == 0:
                        raise TransactionFailed(tx_hex, receipt)

                    logger.info(f"Transaction confirmed in block {receipt['blockNumber']}")
                    return {
                        "tx_hash": tx_hex,
                        "receipt": receipt,
                        "gas_used": receipt["gasUsed"],
                        "block_number": receipt["blockNumber"],
                    }

                except ContractLogicError as e:
                    logger.error(f"Contract logic error: {e}")
                    raise
                except (ValueError, Web3RPCError) as e:
                    error_message = str(e).lower()
                    if (
                        "nonce" in error_message
                        or "replacement transaction underpriced" in error_message
                    ) and attempt < max_retries - 1:
                        logger.warning(
                            f"Nonce conflict detected, retrying... (attempt {attempt + 2}/{max_retries})"
                        )
                        time.sleep(1)
                        last_error = e
                        continue
                    raise

        # If we get here, all retries failed
        if last_error:
            raise last_error
        raise RuntimeError("Transaction failed after maximum retries")
