"""Tests for the per-tick scheduler, registries, timers and scripts."""

import pytest

from conftest import Box, recorder, run_ticks
from kinetic import script
from kinetic.animation import Animation, PropertyAnimation, concat, parallel
from kinetic.clock import FrameClock
from kinetic.completion import CompletionHandle
from kinetic.errors import (
    AnimationCancelled,
    HandleNotReady,
    RuntimeInvariantViolation,
    UserCallbackError,
)
from kinetic.numeric import LinearAnimation
from kinetic.scheduler import (
    Scheduler,
    animate,
    get_default_scheduler,
    set_default_scheduler,
    timer,
    update_animations,
)


def explode(target, progress, initial):
    raise ValueError("boom")


# ---------------------------------------------------------------------------
# Playback scenarios
# ---------------------------------------------------------------------------


class TestScenarios:
    def test_single_linear_animation(self, scheduler):
        calls = []
        box = Box(x=0.0)
        handle = scheduler.animate(box, LinearAnimation("x", 1, 10, start=0), lambda: calls.append(1))
        run_ticks(scheduler, 29)
        assert not handle.done()
        assert box.x < 10
        run_ticks(scheduler, 1)
        assert box.x == 10
        assert calls == [1]
        assert len(scheduler.animations) == 0
        assert handle.result() is box
        run_ticks(scheduler, 5)
        assert calls == [1]

    def test_concat_there_and_back(self, scheduler):
        box = Box(x=0.0)
        scheduler.animate(box, concat(LinearAnimation("x", 1, 10, start=0), LinearAnimation("x", 1, 0, start=10)))
        run_ticks(scheduler, 30)
        assert box.x == pytest.approx(10)
        run_ticks(scheduler, 30)
        assert box.x == 0

    def test_parallel_short_and_long(self, scheduler):
        box = Box(x=0.0, y=0.0)
        handle = scheduler.animate(
            box, parallel(LinearAnimation("x", 1, 10, start=0), LinearAnimation("y", 3, 30, start=0)))
        run_ticks(scheduler, 30)
        assert box.x == pytest.approx(10)
        assert box.y == pytest.approx(10)
        run_ticks(scheduler, 30)
        assert box.x == pytest.approx(10)
        assert box.y == pytest.approx(20)
        run_ticks(scheduler, 30)
        assert box.y == 30
        assert handle.done()

    def test_later_registration_wins_shared_property(self, scheduler):
        box = Box(z=0.0)
        a = scheduler.animate(box, LinearAnimation("z", 1, 5, start=0))
        b = scheduler.animate(box, LinearAnimation("z", 1, 7, start=0))
        run_ticks(scheduler, 15)
        assert box.z == pytest.approx(3.5)
        run_ticks(scheduler, 15)
        assert box.z == 7
        assert a.done() and b.done()


# ---------------------------------------------------------------------------
# Registry behaviour
# ---------------------------------------------------------------------------


class TestRegistry:
    def test_removal_does_not_skip_successors(self, scheduler):
        boxes = [Box(seen=[]) for _ in range(4)]
        for box, duration in zip(boxes, [0.001, 1, 0.001, 1]):
            scheduler.animate(box, recorder(duration))
        run_ticks(scheduler, 1)
        assert [len(b.seen) for b in boxes] == [1, 1, 1, 1]
        assert len(scheduler.animations) == 2

    def test_advanced_at_most_once_per_tick(self, scheduler):
        box = Box(seen=[])
        scheduler.animate(box, recorder(1))
        scheduler.clock.advance()
        scheduler.update()
        scheduler.update()
        assert box.seen == [pytest.approx(1 / 30)]

    def test_animation_registered_from_a_callback_starts_next_tick(self, scheduler):
        box = Box(x=0.0)

        def chain():
            scheduler.animate(box, LinearAnimation("x", 1, 20))

        scheduler.animate(box, LinearAnimation("x", 1, 10), chain)
        run_ticks(scheduler, 30)
        assert box.x == 10
        assert len(scheduler.animations) == 1
        run_ticks(scheduler, 30)
        assert box.x == 20
        assert len(scheduler.animations) == 0

    def test_iteration_is_registration_order(self, scheduler):
        order = []
        targets = [Box(name=n) for n in "abc"]
        for t in targets:
            scheduler.animate(t, PropertyAnimation("name", 1, lambda p, n: order.append(n) or n))
        run_ticks(scheduler, 1)
        assert order == ["a", "b", "c"]


# ---------------------------------------------------------------------------
# Errors and cancellation
# ---------------------------------------------------------------------------


class TestErrors:
    def test_update_error_isolated_to_its_animation(self, scheduler):
        bad_box, good_box = Box(), Box(x=0.0)
        bad = scheduler.animate(bad_box, Animation(1, explode))
        good = scheduler.animate(good_box, LinearAnimation("x", 1, 10))
        run_ticks(scheduler, 1)
        assert bad.done()
        error = bad.exception()
        assert isinstance(error, UserCallbackError)
        assert isinstance(error.__cause__, ValueError)
        assert error.target is bad_box
        assert good_box.x == pytest.approx(10 / 30)
        assert len(scheduler.animations) == 1
        run_ticks(scheduler, 29)
        assert good.result() is good_box

    def test_callback_error_fails_the_handle(self, scheduler):
        box = Box(x=0.0)

        def callback():
            raise KeyError("missing")

        handle = scheduler.animate(box, LinearAnimation("x", 1, 10), callback)
        other = scheduler.animate(Box(y=0.0), LinearAnimation("y", 1, 10))
        run_ticks(scheduler, 30)
        assert isinstance(handle.exception(), UserCallbackError)
        with pytest.raises(UserCallbackError):
            handle.result()
        assert other.done() and other.exception() is None
        assert len(scheduler.animations) == 0

    def test_done_callback_error_is_logged_not_raised(self, scheduler):
        handle = scheduler.animate(Box(seen=[]), recorder(0.001))
        handle.add_done_callback(lambda h: 1 / 0)
        run_ticks(scheduler, 1)
        assert handle.done()

    def test_double_resolution_is_an_invariant_violation(self):
        handle = CompletionHandle()
        handle.set_result(1)
        with pytest.raises(RuntimeInvariantViolation):
            handle.set_result(2)
        with pytest.raises(RuntimeInvariantViolation):
            handle.set_exception(ValueError())

    def test_pending_handle_has_no_result(self):
        with pytest.raises(HandleNotReady):
            CompletionHandle().result()

    def test_cancel(self, scheduler):
        calls = []
        box = Box(x=0.0)
        handle = scheduler.animate(box, LinearAnimation("x", 1, 30), lambda: calls.append(1))
        run_ticks(scheduler, 10)
        assert handle.cancel() is True
        assert handle.cancel() is False
        assert handle.cancelled()
        with pytest.raises(AnimationCancelled):
            handle.result()
        run_ticks(scheduler, 30)
        assert box.x == pytest.approx(10)
        assert calls == []
        assert len(scheduler.animations) == 0

    def test_update_function_cancelling_its_own_handle(self, scheduler):
        calls = []
        handles = []

        def update(target, progress, initial):
            target.x = progress
            if progress >= 1:
                handles[0].cancel()

        box = Box(x=0.0)
        handles.append(scheduler.animate(box, Animation(1, update), lambda: calls.append(1)))
        other = scheduler.animate(Box(y=0.0), LinearAnimation("y", 1, 10))
        run_ticks(scheduler, 30)
        assert handles[0].cancelled()
        assert calls == []
        assert other.result() is not None
        assert len(scheduler.animations) == 0
        run_ticks(scheduler, 5)
        assert box.x == 1.0

    def test_cancel_all_for_one_target(self, scheduler):
        a, b = Box(x=0.0), Box(x=0.0)
        ha = scheduler.animate(a, LinearAnimation("x", 1, 1))
        hb = scheduler.animate(b, LinearAnimation("x", 1, 1))
        assert scheduler.cancel_all(a) == 1
        assert ha.cancelled() and not hb.done()


# ---------------------------------------------------------------------------
# Timers
# ---------------------------------------------------------------------------


class TestTimers:
    def test_resolves_after_its_ticks(self, scheduler):
        handle = scheduler.timer(1)
        run_ticks(scheduler, 29)
        assert not handle.done()
        run_ticks(scheduler, 1)
        assert handle.result() == 30
        assert scheduler.pending() == 0

    def test_cancel(self, scheduler):
        handle = scheduler.timer(1)
        assert scheduler.cancel(handle)
        assert handle.cancelled()
        assert scheduler.timers == []


# ---------------------------------------------------------------------------
# Module-level registry
# ---------------------------------------------------------------------------


@pytest.fixture
def default_scheduler():
    s = Scheduler(FrameClock(frame_rate=30))
    set_default_scheduler(s)
    yield s
    set_default_scheduler(None)


class TestDefaultScheduler:
    def test_free_functions_use_the_default(self, default_scheduler):
        assert get_default_scheduler() is default_scheduler
        box = Box(x=0.0)
        handle = animate(box, LinearAnimation("x", 1, 10))
        waited = timer(0.5)
        for _ in range(30):
            default_scheduler.clock.advance()
            update_animations()
        assert waited.done()
        assert handle.done()
        assert box.x == 10

    def test_update_for_one_target(self, default_scheduler):
        a, b = Box(seen=[]), Box(seen=[])
        animate(a, recorder(1))
        animate(b, recorder(1))
        default_scheduler.clock.advance()
        update_animations(a)
        assert len(a.seen) == 1 and b.seen == []
        update_animations()
        assert len(a.seen) == 1 and len(b.seen) == 1

    def test_lazily_created(self):
        set_default_scheduler(None)
        try:
            assert get_default_scheduler().clock.frame_rate == 30
        finally:
            set_default_scheduler(None)


# ---------------------------------------------------------------------------
# Scripts
# ---------------------------------------------------------------------------


class TestScripts:
    def test_awaits_handles_in_sequence(self, scheduler):
        box = Box(x=0.0)
        marks = []

        async def story():
            await scheduler.timer(1)
            marks.append(scheduler.clock.frame)
            await scheduler.animate(box, LinearAnimation("x", 1, 10))
            marks.append(scheduler.clock.frame)
            return "done"

        handle = script.run(story())
        run_ticks(scheduler, 60)
        assert marks == [30, 60]
        assert handle.result() == "done"
        assert box.x == 10

    def test_failure_propagates_into_the_script(self, scheduler):
        async def story():
            waited = scheduler.timer(1)
            waited.cancel()
            await waited

        handle = script.run(story())
        assert isinstance(handle.exception(), UserCallbackError)
        assert isinstance(handle.exception().__cause__, AnimationCancelled)

    def test_script_can_recover_from_cancellation(self, scheduler):
        async def story():
            waited = scheduler.timer(1)
            waited.cancel()
            try:
                await waited
            except AnimationCancelled:
                return "recovered"

        assert script.run(story()).result() == "recovered"

    def test_cancel_script(self, scheduler):
        async def story():
            await scheduler.timer(10)

        handle = script.run(story())
        handle.cancel()
        assert handle.cancelled()
        run_ticks(scheduler, 300)

    def test_gather(self, scheduler):
        handle = script.gather(scheduler.timer(1), scheduler.timer(2))
        run_ticks(scheduler, 30)
        assert not handle.done()
        run_ticks(scheduler, 30)
        assert handle.result() == [30, 60]

    def test_gather_nothing(self):
        assert script.gather().result() == []
