"""
Shared shape of the long-running management commands:
``--once/-o`` (default) runs a single iteration, ``--watch/-w`` loops every
``--interval`` seconds until SIGINT/SIGTERM. A failed one-shot run exits
with status 1.
"""

import logging
from typing import Callable, List, Tuple

from django.core.exceptions import ImproperlyConfigured
from django.core.management.base import BaseCommand, CommandError

from rosca.apps.automation.runner import (
    PeriodicRunner,
    install_signal_handlers,
    run_concurrently,
)
from rosca.onchain.client import ChainClient

logger = logging.getLogger(__name__)

Job = Callable[[], object]


class LoopCommand(BaseCommand):
    def add_arguments(self, parser):
        mode = parser.add_mutually_exclusive_group()
        mode.add_argument(
            "--once",
            "-o",
            action="store_true",
            help="Run a single iteration and exit (default). Exits 1 if it failed.",
        )
        mode.add_argument(
            "--watch", "-w", action="store_true", help="Repeat every --interval seconds until stopped."
        )
        parser.add_argument(
            "--interval",
            type=int,
            default=None,
            help="Seconds between iterations in watch mode.",
        )

    def build(self, options) -> Tuple[ChainClient, List[Tuple[str, Job, int]]]:
        """Return the chain client and (name, job, default interval) per loop."""
        raise NotImplementedError

    def handle(self, *args, **options):
        try:
            client, jobs = self.build(options)
        except ImproperlyConfigured as e:
            raise CommandError(str(e))

        runners = [
            PeriodicRunner(name, job, options["interval"] or interval)
            for name, job, interval in jobs
        ]
        try:
            if options["watch"]:
                stop_event = runners[0].stop_event
                for runner in runners[1:]:
                    runner.stop_event = stop_event
                install_signal_handlers(stop_event)
                for runner in runners:
                    self.stdout.write(
                        self.style.SUCCESS(f"{runner.name}: watching every {runner.interval}s")
                    )
                if len(runners) == 1:
                    runners[0].run_forever()
                else:
                    run_concurrently(runners)
                return

            failed = [r.name for r in runners if not r.run_iteration()]
            if failed:
                raise CommandError(f"Iteration failed: {', '.join(failed)} (see log)")
        finally:
            client.close()
