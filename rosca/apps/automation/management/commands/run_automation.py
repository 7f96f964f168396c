from django.conf import settings

from rosca.apps.automation.config import load_automation_config
from rosca.apps.automation.draw_scheduler import DrawScheduler
from rosca.apps.automation.loop_command import LoopCommand
from rosca.apps.automation.management.commands.auto_draw import draw_job
from rosca.apps.automation.management.commands.auto_whitelist import whitelist_job
from rosca.apps.automation.whitelist_sentinel import WhitelistSentinel
from rosca.onchain.client import ChainClient


class Command(LoopCommand):
    help = "Run the draw scheduler and the whitelist sentinel together on one signer."

    def build(self, options):
        config = load_automation_config(require_deposit=True)
        client = ChainClient.from_settings(private_key=config.private_key)
        return client, [
            (
                "auto-whitelist",
                whitelist_job(self, client, WhitelistSentinel.from_settings(client)),
                settings.WHITELIST_INTERVAL_SECONDS,
            ),
            (
                "auto-draw",
                draw_job(self, client, DrawScheduler.from_settings(client)),
                settings.DRAW_INTERVAL_SECONDS,
            ),
        ]
