import pytest

from fueltrack.utils.throttle import ThrottledQueue


def test_first_task_runs_immediately(clock):
    queue = ThrottledQueue(1.1, clock=clock, sleep=clock.sleep)
    queue.submit(lambda: 'done')
    assert queue.drain() == ['done']
    assert clock.sleeps == []


def test_starts_are_spaced_by_min_interval(clock):
    queue = ThrottledQueue(1.1, clock=clock, sleep=clock.sleep)
    starts = []
    for _ in range(3):
        queue.submit(lambda: starts.append(clock()))
    queue.drain()

    assert clock.sleeps == [pytest.approx(1.1), pytest.approx(1.1)]
    assert starts[1] - starts[0] >= 1.1 - 1e-9
    assert starts[2] - starts[1] >= 1.1 - 1e-9


def test_time_spent_in_task_counts_toward_interval(clock):
    queue = ThrottledQueue(1.1, clock=clock, sleep=clock.sleep)
    queue.submit(lambda: clock.advance(0.5))
    queue.submit(lambda: None)
    queue.drain()
    assert clock.sleeps == [pytest.approx(0.6)]


def test_no_sleep_when_interval_already_passed(clock):
    queue = ThrottledQueue(1.1, clock=clock, sleep=clock.sleep)
    queue.submit(lambda: clock.advance(2.0))
    queue.submit(lambda: None)
    queue.drain()
    assert clock.sleeps == []


def test_drain_keeps_submission_order(clock):
    queue = ThrottledQueue(0.5, clock=clock, sleep=clock.sleep)
    for i in range(4):
        queue.submit(lambda i=i: i * 10)
    assert len(queue) == 4
    assert queue.drain() == [0, 10, 20, 30]
    assert len(queue) == 0
