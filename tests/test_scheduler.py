"""Tests for the simulated-time scheduler."""

import pytest

from bocce.scheduler import Scheduler


def test_fixed_steps_follow_simulated_time():
    scheduler = Scheduler(fixed_dt=0.02)
    steps = []
    scheduler.subscribe_fixed(steps.append)
    for _ in range(60):
        scheduler.tick(1 / 60)
    # 1 s of frames at 60 Hz is exactly 50 physics steps
    assert len(steps) == 50
    assert all(dt == 0.02 for dt in steps)


def test_large_frame_runs_several_fixed_steps_first():
    scheduler = Scheduler(fixed_dt=0.02)
    order = []
    scheduler.subscribe_fixed(lambda dt: order.append("fixed"))
    scheduler.subscribe_frame(lambda dt: order.append("frame"))
    scheduler.tick(0.1)
    assert order == ["fixed"] * 5 + ["frame"]


def test_fixed_subscribers_run_in_order():
    scheduler = Scheduler()
    order = []
    scheduler.subscribe_fixed(lambda dt: order.append(1))
    scheduler.subscribe_fixed(lambda dt: order.append(2))
    scheduler.tick(0.02)
    assert order == [1, 2]


def test_after_fires_once_when_due():
    scheduler = Scheduler()
    fired = []
    scheduler.after(1.0, lambda: fired.append(scheduler.time))
    scheduler.run(0.9, 0.02)
    assert fired == []
    scheduler.run(0.2, 0.02)
    assert len(fired) == 1
    assert fired[0] == pytest.approx(1.0)
    scheduler.run(5.0, 0.02)
    assert len(fired) == 1
    assert scheduler.pending == 0


def test_timers_fire_in_due_order():
    scheduler = Scheduler()
    fired = []
    scheduler.after(0.5, lambda: fired.append("late"))
    scheduler.after(0.1, lambda: fired.append("early"))
    scheduler.after(0.5, lambda: fired.append("late-2"))
    scheduler.tick(1.0)
    assert fired == ["early", "late", "late-2"]


def test_timer_can_schedule_another():
    scheduler = Scheduler()
    fired = []

    def first():
        fired.append("first")
        scheduler.after(0.5, lambda: fired.append("second"))

    scheduler.after(0.5, first)
    scheduler.run(0.6, 0.02)
    assert fired == ["first"]
    scheduler.run(0.5, 0.02)
    assert fired == ["first", "second"]


def test_run_stops_when_condition_met():
    scheduler = Scheduler()
    done = []
    scheduler.after(0.3, lambda: done.append(True))
    assert scheduler.run(10.0, 0.02, until=lambda: bool(done))
    assert scheduler.time == pytest.approx(0.3)


def test_run_reports_timeout():
    scheduler = Scheduler()
    assert not scheduler.run(0.5, 0.02, until=lambda: False)
    assert scheduler.time == pytest.approx(0.5)


def test_invalid_fixed_dt():
    with pytest.raises(ValueError):
        Scheduler(fixed_dt=0.0)
