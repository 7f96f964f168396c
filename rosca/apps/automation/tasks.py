from __future__ import annotations

import logging
from dataclasses import asdict

from celery import shared_task
from django.conf import settings

from rosca.apps.automation.config import load_automation_config
from rosca.apps.automation.draw_scheduler import DrawScheduler
from rosca.apps.automation.whitelist_sentinel import WhitelistSentinel
from rosca.onchain.client import ChainClient, signer_lock_ttl
from rosca.onchain.signer_lock import RedisSignerLock, SingleFlight, redis_from_settings

logger = logging.getLogger(__name__)

TASK_TIME_LIMIT = 600


def _signing_client(config, r) -> ChainClient:
    # shared by every worker process using this account
    lock = RedisSignerLock(r=r, ttl=signer_lock_ttl(settings.TX_RECEIPT_TIMEOUT))
    return ChainClient.from_settings(private_key=config.private_key, signer_lock=lock)


@shared_task(queue="automation", time_limit=TASK_TIME_LIMIT)
def trigger_due_draws() -> dict:
    """One draw scheduler pass; beat runs it every DRAW_INTERVAL_SECONDS."""
    config = load_automation_config()
    r = redis_from_settings()
    with SingleFlight(r, "trigger_due_draws", ttl=TASK_TIME_LIMIT + 60).hold() as acquired:
        if not acquired:
            logger.info("trigger_due_draws skipped: previous pass still running")
            return {"skipped_pass": True}
        with _signing_client(config, r) as client:
            summary = DrawScheduler.from_settings(client).run_once()
    return asdict(summary)


@shared_task(queue="automation", time_limit=TASK_TIME_LIMIT)
def whitelist_new_pools() -> dict:
    """One whitelist sentinel pass; beat runs it every WHITELIST_INTERVAL_SECONDS."""
    config = load_automation_config(require_deposit=True)
    r = redis_from_settings()
    with SingleFlight(r, "whitelist_new_pools", ttl=TASK_TIME_LIMIT + 60).hold() as acquired:
        if not acquired:
            logger.info("whitelist_new_pools skipped: previous pass still running")
            return {"skipped_pass": True}
        with _signing_client(config, r) as client:
            summary = WhitelistSentinel.from_settings(client).run_once()
    return asdict(summary)
