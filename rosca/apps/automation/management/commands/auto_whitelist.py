from django.conf import settings

from rosca.apps.automation.config import load_automation_config
from rosca.apps.automation.loop_command import LoopCommand
from rosca.apps.automation.whitelist_sentinel import WhitelistSentinel
from rosca.onchain.client import ChainClient


def whitelist_job(command, client: ChainClient, sentinel: WhitelistSentinel):
    def job():
        client.connect()
        summary = sentinel.run_once()
        command.stdout.write(
            f"Whitelist: succeeded={summary.succeeded} failed={summary.failed} "
            f"already_registered={summary.already_registered}"
        )
        return summary

    return job


class Command(LoopCommand):
    help = "Register every factory pool with the randomness oracle deposit contract."

    def build(self, options):
        config = load_automation_config(require_deposit=True)
        client = ChainClient.from_settings(private_key=config.private_key)
        sentinel = WhitelistSentinel.from_settings(client)
        self.stdout.write(
            f"Factory: {config.factory_address}  Deposit: {config.deposit_address}  "
            f"Gas price: {config.callback_gas_price}  Gas limit: {config.callback_gas_limit}"
        )
        return client, [
            (
                "auto-whitelist",
                whitelist_job(self, client, sentinel),
                settings.WHITELIST_INTERVAL_SECONDS,
            )
        ]
