class ChainUnavailable(ConnectionError):
    """Raised when neither the primary nor the fallback RPC endpoint answers."""


class TransactionFailed(RuntimeError):
    """Raised when a mined transaction reports status 0."""

    def __init__(self, tx_hash: str, receipt=None):
        super().__init__(f"Transaction failed on-chain: {tx_hash}")
        self.tx_hash = tx_hash
        self.receipt = receipt


class SignerLockNotAcquired(RuntimeError):
    pass
