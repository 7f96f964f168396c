from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class ChainEvent:
    """A decoded log, as delivered to the ingestor."""

    name: str
    address: str
    args: Dict[str, Any] = field(default_factory=dict)
    block_number: int = 0
    block_timestamp: int = 0
    log_index: int = 0
    tx_hash: str = ""

    @property
    def source(self) -> str:
        return self.address.lower()

    @property
    def position(self):
        return (self.block_number, self.log_index)
