from __future__ import annotations

import logging

from celery import shared_task

from rosca.apps.indexer.poller import LogPoller
from rosca.onchain.client import ChainClient
from rosca.onchain.signer_lock import SingleFlight, redis_from_settings

logger = logging.getLogger(__name__)

TASK_TIME_LIMIT = 300


@shared_task(queue="indexer", time_limit=TASK_TIME_LIMIT)
def poll_chain_logs() -> dict:
    """
    Advance the projection to the chain head (minus confirmations).
    Beat fires this every INDEXER_POLL_INTERVAL_SECONDS; a tick that lands
    while the previous poll is still running is dropped.
    """
    r = redis_from_settings()
    with SingleFlight(r, "poll_chain_logs", ttl=TASK_TIME_LIMIT + 60).hold() as acquired:
        if not acquired:
            logger.info("poll_chain_logs skipped: previous poll still running")
            return {"skipped_pass": True}
        with ChainClient.from_settings(with_signer=False) as client:
            result = LogPoller.from_settings(client).poll_once()
    return {
        "from_block": result.from_block,
        "to_block": result.to_block,
        "fetched": result.fetched,
        "applied": result.applied,
        "rewinds": result.rewinds,
    }
