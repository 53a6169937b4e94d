from dataclasses import dataclass
from typing import Callable, List, Optional

from kinetic.animation import Animation
from kinetic.clock import FrameClock, VideoSpecs
from kinetic.completion import CompletionHandle
from kinetic.errors import AnimationCancelled, ConfigurationError
from kinetic.lib import tlog
from kinetic.registry import ANY, Registry


@dataclass
class Timer:
    end_frame: int
    handle: CompletionHandle


class Scheduler:
    """Global registry plus tick timers, advanced by the host loop once per tick."""

    def __init__(self, clock: Optional[FrameClock] = None):
        self.clock = clock or FrameClock.from_specs(VideoSpecs())
        self.animations = Registry(self.clock, name="scheduler")
        self.timers: List[Timer] = []

    def animate(self, target, animation: Animation, callback: Optional[Callable[[], None]] = None) -> CompletionHandle:
        return self.animations.add(target, animation, callback)

    def timer(self, seconds: float) -> CompletionHandle:
        """Handle resolved once ``seconds`` worth of ticks have passed."""
        if seconds < 0:
            raise ConfigurationError(f"timer duration must not be negative, got {seconds!r}")
        t = Timer(self.clock.frame + self.clock.to_frames(seconds), CompletionHandle(f"timer {seconds:g}s"))
        t.handle.bind_canceller(lambda: self._cancel_timer(t))
        self.timers.append(t)
        return t.handle

    def update(self, target=ANY) -> int:
        if target is ANY:
            self._update_timers()
        return self.animations.advance(target)

    def cancel(self, handle: CompletionHandle) -> bool:
        return handle.cancel()

    def cancel_all(self, target=ANY) -> int:
        return self.animations.cancel_all(target)

    def pending(self) -> int:
        return len(self.animations) + len(self.timers)

    def _update_timers(self):
        for t in self.timers[:]:
            if self.clock.frame >= t.end_frame:
                self.timers.remove(t)
                t.handle.set_result(self.clock.frame)

    def _cancel_timer(self, t: Timer):
        if t in self.timers:
            self.timers.remove(t)
            tlog.warn(f"{t.handle.label} cancelled")
        t.handle.set_exception(AnimationCancelled(f"{t.handle.label} cancelled"))


_default: Optional[Scheduler] = None


def get_default_scheduler() -> Scheduler:
    global _default
    if _default is None:
        _default = Scheduler()
    return _default


def set_default_scheduler(scheduler: Optional[Scheduler]):
    global _default
    _default = scheduler


def animate(target, animation: Animation, callback: Optional[Callable[[], None]] = None) -> CompletionHandle:
    return get_default_scheduler().animate(target, animation, callback)


def update_animations(target=None) -> int:
    """Advance the default scheduler; with ``target`` only that object's animations move."""
    return get_default_scheduler().update(ANY if target is None else target)


def timer(seconds: float) -> CompletionHandle:
    return get_default_scheduler().timer(seconds)
