from collections.abc import Mapping
from typing import Callable, Optional

import numpy as np

from kinetic.animation import KEY_TOLERANCE, Animation
from kinetic.clock import FrameClock
from kinetic.completion import CompletionHandle
from kinetic.errors import AnimationCancelled, ConfigurationError, RuntimeInvariantViolation


def _copy_value(value):
    if isinstance(value, np.ndarray):
        return value.copy()
    if isinstance(value, list):
        return list(value)
    return value


class Snapshot(Mapping):
    """Read-only values of the picked properties, taken when playback starts."""

    def __init__(self, target, properties):
        values = {}
        for name in sorted(properties):
            try:
                values[name] = _copy_value(getattr(target, name))
            except AttributeError as e:
                raise ConfigurationError(f"{type(target).__name__} has no property {name!r} to animate") from e
        self._values = values

    def __getitem__(self, name):
        # Hand out copies so update functions cannot corrupt the snapshot
        return _copy_value(self._values[name])

    def __iter__(self):
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def __repr__(self):
        return f"Snapshot({self._values!r})"


class PlayingAnimation:
    """One playback of an Animation template on one target."""

    def __init__(self, target, animation: Animation, clock: FrameClock,
                 callback: Optional[Callable[[], None]] = None, handle: Optional[CompletionHandle] = None):
        self.target = target
        self.animation = animation
        self.clock = clock
        self.callback = callback
        self.handle = handle or CompletionHandle(f"{type(animation).__name__} on {type(target).__name__}")

        self.initial_values = Snapshot(target, animation.picked_properties)
        animation.check_initial(self.initial_values)

        self.begin_tick = clock.frame
        self.frame_duration = clock.to_frames(animation.duration)
        self.key_progress_values = animation.key_progress_values
        self.key_cursor = 0
        self.last_tick = None
        self.finished = False

    def __repr__(self):
        state = "finished" if self.finished else f"key {self.key_cursor}/{len(self.key_progress_values)}"
        return f"<PlayingAnimation {self.handle.label} from tick {self.begin_tick} ({state})>"

    @property
    def progress(self) -> float:
        if self.frame_duration == 0:
            return 1.0
        return (self.clock.frame - self.begin_tick) / self.frame_duration

    def update(self) -> bool:
        """Advance to the clock's current tick; True when this call finished the playback."""
        if self.finished:
            raise RuntimeInvariantViolation(f"{self.handle.label} updated after it finished")
        self.last_tick = self.clock.frame
        progress = self.progress
        keys = self.key_progress_values

        # Run every key frame the tick grid reached, in order, at its exact value.
        # Ticks within KEY_TOLERANCE of a key count as landing on it.
        while progress >= keys[self.key_cursor] - KEY_TOLERANCE:
            self.animation.update_target(self.target, keys[self.key_cursor], self.initial_values)
            if self.finished:
                # The update function cancelled this playback
                return False
            if self.key_cursor == len(keys) - 1:
                self._finish()
                return True
            self.key_cursor += 1

        # A tick landing on a key was already evaluated there
        if self.key_cursor > 0 and progress - keys[self.key_cursor - 1] <= KEY_TOLERANCE:
            return False
        self.animation.update_target(self.target, min(progress, 1.0), self.initial_values)
        return False

    def _finish(self):
        self.finished = True
        if self.callback is not None:
            self.callback()
        if not self.handle.done():
            self.handle.set_result(self.target)

    def fail(self, error: BaseException):
        """Stop the playback and surface ``error`` through its handle."""
        self.finished = True
        if not self.handle.done():
            self.handle.set_exception(error)

    def cancel(self):
        if self.finished:
            return False
        self.fail(AnimationCancelled(f"{self.handle.label} cancelled at tick {self.clock.frame}"))
        return True
