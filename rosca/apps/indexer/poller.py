"""
Log poller

Walks the chain from the stored cursor to the head in block batches and feeds
events to the ingestor. Delivery is at-least-once: the cursor only advances
past a batch once every event in it was applied, so a crash replays blocks
but never skips them.

When an applied event grows the watched set (a new pool), the rest of the
batch was fetched without the new address. The poller rewinds to the block of
that event and refetches, so the pool's own logs are never missed.
"""

import logging
from dataclasses import dataclass

from rosca.apps.indexer.exceptions import LogRangeTooLarge
from rosca.apps.indexer.ingestor import EventIngestor
from rosca.apps.indexer.models import IndexerCursor
from rosca.apps.indexer.registry import ContractRegistry

logger = logging.getLogger(__name__)


@dataclass
class PollResult:
    from_block: int
    to_block: int
    fetched: int = 0
    applied: int = 0
    rewinds: int = 0


class LogPoller:
    def __init__(
        self,
        source,
        ingestor: EventIngestor,
        registry: ContractRegistry,
        start_block: int = 0,
        batch_size: int = 1000,
        confirmations: int = 0,
        cursor_name: str = "default",
    ):
        self.source = source
        self.ingestor = ingestor
        self.registry = registry
        self.start_block = start_block
        self.batch_size = max(1, batch_size)
        self.confirmations = confirmations
        self.cursor_name = cursor_name

    @classmethod
    def from_settings(cls, client) -> "LogPoller":
        from django.conf import settings

        from rosca.apps.indexer.log_source import LogDecoder, Web3LogSource

        registry = ContractRegistry(
            settings.FACTORY_ADDRESS, settings.FACTORY_START_BLOCK
        ).load()
        return cls(
            source=Web3LogSource(client, LogDecoder.from_settings()),
            ingestor=EventIngestor(registry),
            registry=registry,
            start_block=settings.FACTORY_START_BLOCK,
            batch_size=settings.INDEXER_BATCH_SIZE,
            confirmations=settings.INDEXER_CONFIRMATIONS,
        )

    def _cursor(self) -> IndexerCursor:
        cursor, _ = IndexerCursor.objects.get_or_create(
            name=self.cursor_name, defaults={"last_block": self.start_block - 1}
        )
        return cursor

    def _save(self, cursor: IndexerCursor, block: int) -> None:
        cursor.last_block = block
        cursor.save(update_fields=["last_block", "updated_at"])

    def poll_once(self) -> PollResult:
        cursor = self._cursor()
        head = self.source.latest_block() - self.confirmations
        current = max(cursor.last_block + 1, self.start_block)
        result = PollResult(from_block=current, to_block=head)
        if current > head:
            return result

        batch_size = self.batch_size
        while current <= head:
            batch_to = min(current + batch_size - 1, head)
            try:
                events = self.source.fetch(self.registry.addresses(), current, batch_to)
            except LogRangeTooLarge as e:
                if batch_size <= 1:
                    raise
                batch_size = max(batch_size // 2, 1)
                logger.warning(f"get_logs too large ({e}), reducing batch size to {batch_size}")
                continue

            result.fetched += len(events)
            watched = len(self.registry)
            rewind_to = None
            for event in events:
                if self.ingestor.apply(event):
                    result.applied += 1
                if len(self.registry) > watched:
                    rewind_to = event.block_number
                    break

            if rewind_to is not None:
                # earlier events of this block replay as no-ops
                logger.info(f"Watched set grew at block={rewind_to}, refetching")
                result.rewinds += 1
                self._save(cursor, rewind_to - 1)
                current = rewind_to
                continue

            self._save(cursor, batch_to)
            current = batch_to + 1

        logger.info(
            f"Indexed blocks {result.from_block}-{result.to_block} "
            f"fetched={result.fetched} applied={result.applied}"
        )
        return result
