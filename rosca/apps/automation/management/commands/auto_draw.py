from django.conf import settings

from rosca.apps.automation.config import load_automation_config
from rosca.apps.automation.draw_scheduler import DrawScheduler
from rosca.apps.automation.loop_command import LoopCommand
from rosca.onchain.client import ChainClient


def draw_job(command, client: ChainClient, scheduler: DrawScheduler):
    def job():
        client.connect()
        summary = scheduler.run_once()
        command.stdout.write(
            f"Draws: checked={summary.checked} triggered={summary.triggered} "
            f"failed={summary.failed} skipped={summary.skipped}"
        )
        return summary

    return job


class Command(LoopCommand):
    help = "Trigger autoDraw on every pool whose current period has ended."

    def build(self, options):
        config = load_automation_config()
        client = ChainClient.from_settings(private_key=config.private_key)
        scheduler = DrawScheduler.from_settings(client)
        self.stdout.write(f"Factory: {config.factory_address}  Account: {client.address}")
        return client, [
            ("auto-draw", draw_job(self, client, scheduler), settings.DRAW_INTERVAL_SECONDS)
        ]
