"""
Chain log source

Fetches raw logs with ``eth_getLogs`` for the watched addresses, decodes them
against the factory and pool ABIs and attaches block timestamps.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import Web3RPCError

from rosca.apps.indexer.events import ChainEvent
from rosca.apps.indexer.exceptions import EventDecodeError, LogRangeTooLarge
from rosca.onchain.base_contract import load_abi
from rosca.onchain.client import ChainClient

logger = logging.getLogger(__name__)

TOO_MANY_RESULTS = ("query returned more than", "too many", "block range", "limit exceeded")


def event_signature(event_abi: dict) -> str:
    types = ",".join(i["type"] for i in event_abi.get("inputs", []))
    return f"{event_abi['name']}({types})"


class LogDecoder:
    """Maps topic0 to an ABI event and decodes logs into ``ChainEvent``."""

    def __init__(self, *abis: Iterable[dict]):
        # offline instance; decoding only needs the codec
        self._web3 = Web3()
        self._events: Dict[bytes, Tuple[str, object]] = {}
        for abi in abis:
            abi = list(abi)
            contract = self._web3.eth.contract(abi=abi)
            for item in abi:
                if item.get("type") != "event":
                    continue
                topic = bytes(Web3.keccak(text=event_signature(item)))
                self._events[topic] = (item["name"], getattr(contract.events, item["name"])())

    @classmethod
    def from_settings(cls) -> "LogDecoder":
        from django.conf import settings

        return cls(
            load_abi(settings.POOL_FACTORY_ABI_PATH),
            load_abi(settings.SAVINGS_POOL_ABI_PATH),
        )

    def event_names(self) -> List[str]:
        return sorted(name for name, _ in self._events.values())

    def decode(self, log, block_timestamp: int) -> Optional[ChainEvent]:
        topics = log.get("topics") or []
        if not topics:
            return None
        entry = self._events.get(bytes(HexBytes(topics[0])))
        if entry is None:
            logger.debug(f"Unknown topic skipped address={log.get('address')}")
            return None

        name, event = entry
        try:
            data = event.process_log(log)
        except Exception as e:
            raise EventDecodeError(
                f"Cannot decode {name} address={log.get('address')} "
                f"block={log.get('blockNumber')}: {e}"
            ) from e

        return ChainEvent(
            name=name,
            address=str(log["address"]).lower(),
            args=dict(data["args"]),
            block_number=int(log["blockNumber"]),
            block_timestamp=int(block_timestamp),
            log_index=int(log.get("logIndex", 0)),
            tx_hash=Web3.to_hex(log["transactionHash"]) if log.get("transactionHash") else "",
        )


class Web3LogSource:
    def __init__(self, client: ChainClient, decoder: LogDecoder):
        self.client = client
        self.decoder = decoder
        self._block_ts_cache: Dict[int, int] = {}

    def latest_block(self) -> int:
        return self.client.call(lambda w3: w3.eth.block_number)

    def block_timestamp(self, block_number: int) -> int:
        if block_number in self._block_ts_cache:
            return self._block_ts_cache[block_number]
        block = self.client.call(lambda w3: w3.eth.get_block(block_number))
        ts = int(block["timestamp"])
        self._block_ts_cache[block_number] = ts
        return ts

    def fetch(self, addresses: List[str], from_block: int, to_block: int) -> List[ChainEvent]:
        """
        Decoded events for ``addresses`` in [from_block, to_block], in
        (block, log index) order. Undecodable logs are logged and dropped.

        Raises:
            LogRangeTooLarge: the node rejected the range size
        """
        params = {
            "fromBlock": from_block,
            "toBlock": to_block,
            "address": [Web3.to_checksum_address(a) for a in addresses],
        }
        try:
            logs = self.client.call(lambda w3: w3.eth.get_logs(params))
        except (ValueError, Web3RPCError) as e:
            msg = str(e).lower()
            if any(marker in msg for marker in TOO_MANY_RESULTS):
                raise LogRangeTooLarge(f"{from_block}-{to_block}: {e}") from e
            raise

        logs = sorted(logs, key=lambda x: (x.get("blockNumber", 0), x.get("logIndex", 0)))
        events: List[ChainEvent] = []
        for log in logs:
            try:
                event = self.decoder.decode(log, self.block_timestamp(int(log["blockNumber"])))
            except EventDecodeError as e:
                logger.warning(f"Log skipped: {e}")
                continue
            if event is not None:
                events.append(event)

        if len(self._block_ts_cache) > 10000:
            self._block_ts_cache.clear()
        return events
