from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from rosca.apps.automation.loop_command import LoopCommand
from rosca.apps.indexer.poller import LogPoller
from rosca.onchain.client import ChainClient


class Command(LoopCommand):
    help = "Index factory and pool events into the projection tables."

    def build(self, options):
        if not settings.FACTORY_ADDRESS:
            raise ImproperlyConfigured("FACTORY_ADDRESS is not set in environment.")
        client = ChainClient.from_settings(with_signer=False)
        poller = LogPoller.from_settings(client)

        def job():
            client.connect()
            result = poller.poll_once()
            self.stdout.write(
                f"Blocks {result.from_block}-{result.to_block}: "
                f"{result.applied}/{result.fetched} events applied"
            )
            return result

        return client, [("indexer", job, settings.INDEXER_POLL_INTERVAL_SECONDS)]
