from typing import Callable, Optional

from kinetic.animation import Animation
from kinetic.clock import FrameClock
from kinetic.completion import CompletionHandle
from kinetic.component import Component
from kinetic.errors import ConfigurationError
from kinetic.registry import Registry


class Animatable(Component):
    """A scene object that plays animations on itself.

    Each instance owns its registry. The host advances it once per tick
    through ``update_animations`` (``on_update`` does this when the object is
    mounted on an Engine), then draws it with ``show``.
    """

    def __init__(self, clock: Optional[FrameClock] = None, name: Optional[str] = None):
        super().__init__(name or type(self).__name__)
        self._animations = Registry(clock, name=self.name) if clock is not None else None

    @property
    def clock(self) -> Optional[FrameClock]:
        return self._animations.clock if self._animations is not None else None

    @property
    def animations(self) -> Registry:
        if self._animations is None:
            raise ConfigurationError(f"{self.name} is not attached to a frame clock")
        return self._animations

    def attach(self, clock: FrameClock):
        if self._animations is not None and len(self._animations):
            raise ConfigurationError(f"{self.name} cannot change clocks while animations are playing")
        self._animations = Registry(clock, name=self.name)

    def animate(self, animation: Animation, callback: Optional[Callable[[], None]] = None) -> CompletionHandle:
        return self.animations.add(self, animation, callback)

    def update_animations(self) -> int:
        if self._animations is None:
            return 0
        return self._animations.advance()

    def cancel_animations(self) -> int:
        return self.animations.cancel_all()

    def is_animating(self) -> bool:
        return self._animations is not None and len(self._animations) > 0

    def show(self, canvas):
        pass

    def on_init(self, engine):
        super().on_init(engine)
        if self._animations is None:
            self.attach(engine.clock)

    def on_update(self, dt: float):
        self.update_animations()

    def on_render_ui(self, canvas):
        self.show(canvas)
