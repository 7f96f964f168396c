"""
Event ingestor

Applies decoded chain events to the projection, one at a time and in the
order given. Every event runs in its own database transaction; a bad event
is logged and skipped so the stream keeps moving.
"""

import logging
from decimal import InvalidOperation
from typing import Iterable

from django.db import DataError, IntegrityError, transaction

from rosca.apps.indexer.events import ChainEvent
from rosca.apps.indexer.exceptions import EventDecodeError, ProjectionInconsistency
from rosca.apps.indexer.handlers import get_handler
from rosca.apps.indexer.registry import ContractRegistry

logger = logging.getLogger(__name__)


class EventIngestor:
    def __init__(self, registry: ContractRegistry):
        self.registry = registry

    def apply(self, event: ChainEvent) -> bool:
        """
        Apply one event.

        Returns:
            True if the handler ran to completion, False if the event was
            skipped (unknown, unwatched source, inconsistent or malformed).
            Database outages propagate.
        """
        meta = get_handler(event.name)
        if meta is None:
            logger.warning(
                f"Unknown event skipped name={event.name} address={event.source} "
                f"block={event.block_number}"
            )
            return False

        kind = self.registry.kind_of(event.source)
        if kind is None:
            logger.debug(f"Event from unwatched address skipped address={event.source}")
            return False
        if kind != meta.source:
            logger.warning(
                f"{event.name} from {kind} address={event.source} skipped, "
                f"expected {meta.source}"
            )
            return False

        watched_before = set(self.registry.addresses())
        try:
            with transaction.atomic():
                meta.fn(event, self.registry)
        except ProjectionInconsistency as e:
            logger.warning(f"Projection inconsistency, event skipped: {e}")
        except IntegrityError as e:
            logger.error(
                f"Integrity error applying {event.name} address={event.source} "
                f"block={event.block_number}: {e}"
            )
        except (DataError, InvalidOperation, OverflowError) as e:
            logger.warning(
                f"Out-of-range value in {event.name} skipped address={event.source} "
                f"block={event.block_number} log={event.log_index}: {e}"
            )
        except (EventDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning(
                f"Malformed {event.name} skipped address={event.source} "
                f"block={event.block_number} log={event.log_index}: {e!r}"
            )
        else:
            return True

        # roll back watches recorded by the failed transaction
        for address in set(self.registry.addresses()) - watched_before:
            self.registry.forget(address)
        return False

    def ingest(self, events: Iterable[ChainEvent]) -> int:
        applied = 0
        for event in events:
            if self.apply(event):
                applied += 1
        return applied
