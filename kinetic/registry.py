from typing import Callable, List, Optional

from kinetic.animation import Animation
from kinetic.clock import FrameClock
from kinetic.completion import CompletionHandle
from kinetic.errors import RuntimeInvariantViolation, UserCallbackError
from kinetic.lib import tlog
from kinetic.playing import PlayingAnimation

ANY = object()


class Registry:
    """Ordered set of playing animations advanced once per tick.

    Registration order is update order, so when two playbacks write the same
    property in one tick the later registration wins.
    """

    def __init__(self, clock: FrameClock, name: str = "registry"):
        self.clock = clock
        self.name = name
        self.playing: List[PlayingAnimation] = []

    def __len__(self):
        return len(self.playing)

    def __iter__(self):
        return iter(list(self.playing))

    def add(self, target, animation: Animation, callback: Optional[Callable[[], None]] = None) -> CompletionHandle:
        playing = PlayingAnimation(target, animation, self.clock, callback)
        playing.handle.bind_canceller(lambda: self._cancel(playing))
        self.playing.append(playing)
        tlog.debug(f"{self.name}: registered {playing.handle.label} "
                   f"({playing.frame_duration} frames, {len(animation.key_progress_values)} keys)")
        return playing.handle

    def advance(self, target=ANY) -> int:
        """Run one tick of every entry (or only those bound to ``target``); returns how many finished."""
        finished = 0
        for playing in self.playing[:]:
            if playing.finished or (target is not ANY and playing.target is not target):
                continue
            if playing.last_tick == self.clock.frame:
                continue
            try:
                done = playing.update()
            except RuntimeInvariantViolation:
                raise
            except Exception as e:
                self._remove(playing)
                error = UserCallbackError(f"{playing.handle.label} raised {type(e).__name__}: {e}", playing.target)
                error.__cause__ = e
                tlog.err(f"{self.name}: {error}")
                playing.fail(error)
                continue
            if done:
                self._remove(playing)
                finished += 1
                tlog.debug(f"{self.name}: {playing.handle.label} finished")
        return finished

    def cancel(self, handle: CompletionHandle) -> bool:
        for playing in self.playing:
            if playing.handle is handle:
                return self._cancel(playing)
        return False

    def cancel_all(self, target=ANY) -> int:
        cancelled = 0
        for playing in self.playing[:]:
            if target is ANY or playing.target is target:
                cancelled += self._cancel(playing)
        return cancelled

    def _cancel(self, playing: PlayingAnimation) -> bool:
        self._remove(playing)
        if playing.cancel():
            tlog.warn(f"{self.name}: {playing.handle.label} cancelled")
            return True
        return False

    def _remove(self, playing: PlayingAnimation):
        if playing in self.playing:
            self.playing.remove(playing)
