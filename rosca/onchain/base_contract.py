"""
Base Web3 Contract Service
Provides common functionality for interacting with smart contracts
"""

from web3 import Web3
from web3.contract import Contract
from typing import Dict, Any, List
import logging
import json

from .client import ChainClient

logger = logging.getLogger(__name__)

_ABI_CACHE: Dict[str, List[dict]] = {}


def load_abi(abi_path) -> List[dict]:
    """Load a contract ABI JSON file (cached per path)"""
    key = str(abi_path)
    if key not in _ABI_CACHE:
        with open(abi_path, 'r') as f:
            _ABI_CACHE[key] = json.load(f)
    return _ABI_CACHE[key]


class BaseContractService:
    """Base class for Web3 contract interactions"""

    def __init__(self, client: ChainClient, contract_address: str, abi_path):
        """
        Initialize the contract service

        Args:
            client: Shared chain client (connection + signer)
            contract_address: The deployed contract address
            abi_path: Path to the contract ABI JSON file
        """
        self.client = client
        self.abi = load_abi(abi_path)
        self.contract_address = Web3.to_checksum_address(contract_address)

    @property
    def contract(self) -> Contract:
        # rebuilt per access so a failover to the fallback endpoint is picked up
        web3 = self.client.web3 or self.client.connect()
        return web3.eth.contract(address=self.contract_address, abi=self.abi)

    def checksum_address(self, address: str) -> str:
        """Convert address to checksum format"""
        return Web3.to_checksum_address(address)

    def call_read_function(self, function_name: str, *args) -> Any:
        """
        Call a read-only contract function

        Args:
            function_name: Name of the function to call
            *args: Arguments to pass to the function

        Returns:
            Function result
        """
        def _call(web3: Web3):
            contract = web3.eth.contract(address=self.contract_address, abi=self.abi)
            return getattr(contract.functions, function_name)(*args).call()

        try:
            return self.client.call(_call)
        except Exception as e:
            logger.error(f"Error calling {function_name} on {self.contract_address}: {e}")
            raise

    def send(self, function_name: str, *args, value: int = 0) -> Dict[str, Any]:
        """
        Submit a state-changing contract call from the client's signer

        Returns:
            Dict with transaction hash and receipt
        """
        function = getattr(self.contract.functions, function_name)(*args)
        return self.client.send_transaction(function, value=value)
