import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from rosca.apps.indexer import tasks
from rosca.apps.indexer.poller import PollResult
from rosca.onchain.client import ChainClient
from tests.automation.fakes import FakeRedis

pytestmark = pytest.mark.django_db


class StubPoller:
    def __init__(self, error=None):
        self.error = error
        self.polls = 0

    def poll_once(self):
        self.polls += 1
        if self.error:
            raise self.error
        return PollResult(from_block=100, to_block=150, fetched=4, applied=3)


@pytest.fixture
def stub_poller(monkeypatch):
    poller = StubPoller()
    monkeypatch.setattr(ChainClient, "connect", lambda self: None)
    monkeypatch.setattr("rosca.apps.indexer.tasks.redis_from_settings", lambda: FakeRedis())
    monkeypatch.setattr(
        "rosca.apps.indexer.poller.LogPoller.from_settings",
        classmethod(lambda cls, client: poller),
    )
    return poller


def test_poll_chain_logs_task(stub_poller):
    result = tasks.poll_chain_logs.delay().get()

    assert result == {"from_block": 100, "to_block": 150, "fetched": 4, "applied": 3, "rewinds": 0}


def test_poll_chain_logs_skips_while_previous_poll_runs(stub_poller, monkeypatch):
    monkeypatch.setattr(
        "rosca.apps.indexer.tasks.redis_from_settings", lambda: FakeRedis(taken=True)
    )

    assert tasks.poll_chain_logs.delay().get() == {"skipped_pass": True}
    assert stub_poller.polls == 0


def test_run_indexer_once(stub_poller, capsys):
    call_command("run_indexer", "--once")

    assert stub_poller.polls == 1
    assert "3/4 events applied" in capsys.readouterr().out


def test_run_indexer_reports_failure(stub_poller):
    stub_poller.error = RuntimeError("node returned garbage")

    with pytest.raises(CommandError):
        call_command("run_indexer", "--once")


def test_run_indexer_requires_factory(settings, stub_poller):
    settings.FACTORY_ADDRESS = ""

    with pytest.raises(CommandError, match="FACTORY_ADDRESS"):
        call_command("run_indexer", "--once")
