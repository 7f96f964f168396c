import threading

from rosca.apps.automation.runner import PeriodicRunner, run_concurrently


def test_failed_iteration_is_reported_not_raised():
    def job():
        raise RuntimeError("rpc exploded")

    runner = PeriodicRunner("draw", job, interval=0)

    assert runner.run_iteration() is False
    assert runner.failures == 1


def test_run_forever_stops_between_iterations():
    calls = []
    runner = PeriodicRunner("draw", lambda: None, interval=60)

    def job():
        calls.append(1)
        if len(calls) == 3:
            runner.stop()

    runner.job = job
    runner.run_forever()

    assert len(calls) == 3
    assert runner.iterations == 3


def test_failures_do_not_stop_the_loop():
    calls = []
    runner = PeriodicRunner("whitelist", lambda: None, interval=0)

    def job():
        calls.append(1)
        if len(calls) == 2:
            runner.stop()
        raise ValueError("boom")

    runner.job = job
    runner.run_forever()

    assert runner.failures == 2


def test_run_concurrently_shares_stop_event():
    stop = threading.Event()
    seen = {"draw": 0, "whitelist": 0}

    def counting(name):
        def job():
            seen[name] += 1
            if all(seen.values()):
                stop.set()

        return job

    runners = [
        PeriodicRunner("draw", counting("draw"), interval=0.01, stop_event=stop),
        PeriodicRunner("whitelist", counting("whitelist"), interval=0.01, stop_event=stop),
    ]
    run_concurrently(runners)

    assert seen["draw"] >= 1
    assert seen["whitelist"] >= 1
