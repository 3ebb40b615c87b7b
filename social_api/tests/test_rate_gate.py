import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from social_api.config import settings
from social_api.exceptions import RateLimited
from social_api.services.rate_gate import RateGate, ActionKind, TimerThreadScheduler


def test_second_attempt_within_cooldown_is_rejected(rate_gate):
    assert rate_gate.try_acquire(1, ActionKind.COMMENT) is True
    assert rate_gate.try_acquire(1, ActionKind.COMMENT) is False


def test_users_and_kinds_are_gated_independently(rate_gate):
    assert rate_gate.try_acquire(1, ActionKind.COMMENT)
    assert rate_gate.try_acquire(2, ActionKind.COMMENT)
    assert rate_gate.try_acquire(1, ActionKind.POST)
    assert not rate_gate.try_acquire(1, ActionKind.POST)


def test_at_most_one_success_inside_window_then_admitted_again(rate_gate, fake_timer):
    assert rate_gate.try_acquire(7, ActionKind.COMMENT)

    for _ in range(6):
        fake_timer.advance(4)  # up to 24s, still inside the 25s window
        assert not rate_gate.try_acquire(7, ActionKind.COMMENT)

    fake_timer.advance(1)
    assert rate_gate.try_acquire(7, ActionKind.COMMENT)


def test_post_cooldown_is_longer_than_comment_cooldown(rate_gate, fake_timer):
    rate_gate.try_acquire(3, ActionKind.POST)
    rate_gate.try_acquire(3, ActionKind.COMMENT)

    fake_timer.advance(25)
    assert not rate_gate.is_active(3, ActionKind.COMMENT)
    assert rate_gate.is_active(3, ActionKind.POST)

    fake_timer.advance(65)
    assert not rate_gate.is_active(3, ActionKind.POST)


def test_timer_releases_mark_without_further_calls(rate_gate, fake_timer):
    rate_gate.try_acquire(1, ActionKind.POST)
    assert len(fake_timer.pending) == 1

    fake_timer.advance(90)

    assert fake_timer.pending == []
    assert rate_gate._marks == {}


def test_rejected_attempt_does_not_extend_cooldown(rate_gate, fake_timer):
    rate_gate.try_acquire(1, ActionKind.COMMENT)
    fake_timer.advance(10)
    assert not rate_gate.try_acquire(1, ActionKind.COMMENT)

    fake_timer.advance(15)
    assert rate_gate.try_acquire(1, ActionKind.COMMENT)


def test_late_timer_does_not_block_or_release_newer_mark(rate_gate, fake_timer):
    rate_gate.try_acquire(1, ActionKind.COMMENT)
    stale = fake_timer.pending[0]

    # Clock moves past the deadline but the timer has not fired yet
    fake_timer.now += 30
    assert rate_gate.try_acquire(1, ActionKind.COMMENT)
    assert stale.cancelled

    stale.callback()
    assert rate_gate.is_active(1, ActionKind.COMMENT)


def test_require_raises_rate_limited(rate_gate):
    rate_gate.require(5, ActionKind.POST)

    with pytest.raises(RateLimited) as exc_info:
        rate_gate.require(5, ActionKind.POST)

    assert exc_info.value.status_code == 429
    assert "Cannot post again" in exc_info.value.detail


def test_reset_clears_marks_and_cancels_timers(rate_gate, fake_timer):
    rate_gate.try_acquire(1, ActionKind.POST)
    rate_gate.try_acquire(2, ActionKind.COMMENT)

    rate_gate.reset()

    assert fake_timer.pending == []
    assert rate_gate.try_acquire(1, ActionKind.POST)


def test_unconfigured_kind_is_rejected(fake_timer):
    gate = RateGate({ActionKind.POST: 90}, clock=fake_timer, scheduler=fake_timer)

    with pytest.raises(ValueError):
        gate.try_acquire(1, ActionKind.COMMENT)


def test_cooldowns_come_from_settings(fake_timer):
    gate = RateGate.from_settings(settings, clock=fake_timer, scheduler=fake_timer)

    assert gate.cooldown(ActionKind.POST) == settings.POST_COOLDOWN_SECONDS
    assert gate.cooldown(ActionKind.COMMENT) == settings.COMMENT_COOLDOWN_SECONDS


def test_concurrent_attempts_admit_exactly_one():
    gate = RateGate({ActionKind.COMMENT: 60})
    workers = 16
    barrier = threading.Barrier(workers)

    def attempt():
        barrier.wait()
        return gate.try_acquire(42, ActionKind.COMMENT)

    try:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(lambda _: attempt(), range(workers)))
    finally:
        gate.reset()

    assert results.count(True) == 1


def test_thread_timer_scheduler_releases_in_real_time():
    gate = RateGate({ActionKind.COMMENT: 0.05}, scheduler=TimerThreadScheduler())
    assert gate.try_acquire(1, ActionKind.COMMENT)

    deadline = time.monotonic() + 2
    while gate._marks and time.monotonic() < deadline:
        time.sleep(0.01)

    assert gate._marks == {}
    assert gate.try_acquire(1, ActionKind.COMMENT)
    gate.reset()


def test_many_marks_share_one_timer_thread():
    scheduler = TimerThreadScheduler()
    gate = RateGate({ActionKind.COMMENT: 60}, scheduler=scheduler)
    threads_before = threading.active_count()

    try:
        for user_id in range(500):
            assert gate.try_acquire(user_id, ActionKind.COMMENT)

        assert threading.active_count() <= threads_before + 1
        assert scheduler.pending() == 500
    finally:
        gate.reset()

    assert scheduler.pending() == 0


def test_timer_thread_runs_callbacks_in_due_order():
    scheduler = TimerThreadScheduler()
    fired = []
    done = threading.Event()

    scheduler.call_later(0.3, lambda: (fired.append("late"), done.set()))
    scheduler.call_later(0.05, lambda: fired.append("early"))
    cancelled = scheduler.call_later(0.1, lambda: fired.append("cancelled"))
    cancelled.cancel()

    assert done.wait(2)
    assert fired == ["early", "late"]
