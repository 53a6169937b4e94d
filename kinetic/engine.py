from dataclasses import dataclass, field
from typing import Callable, List, Optional

from kinetic.clock import FrameClock, VideoSpecs
from kinetic.completion import CompletionHandle
from kinetic.component import Component
from kinetic.errors import ConfigurationError
from kinetic.lib import tlog
from kinetic.scheduler import Scheduler


@dataclass
class EngineConfig:
    specs: VideoSpecs = field(default_factory=VideoSpecs)
    log_path: Optional[str] = None
    heartbeat_ticks: int = 150
    log_sample_rate: float = 1.0
    debug: bool = False

    def __post_init__(self):
        if self.heartbeat_ticks <= 0:
            raise ConfigurationError(f"heartbeat_ticks must be positive, got {self.heartbeat_ticks!r}")
        if not 0.0 <= self.log_sample_rate <= 1.0:
            raise ConfigurationError(f"log_sample_rate must be within [0, 1], got {self.log_sample_rate!r}")


class Engine:
    """Headless host loop: owns the frame clock and the scheduler, and drives components.

    Each step advances the clock by one tick, then runs the scheduler (timers
    first, then animations in registration order), then updates every enabled
    component, and finally renders them onto ``canvas`` when one is given.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.clock = FrameClock.from_specs(self.config.specs)
        self.scheduler = Scheduler(self.clock)
        self.components: List[Component] = []

        if self.config.log_path:
            tlog.init(self.config.log_path)
        tlog.sample(self.config.log_sample_rate)
        tlog.set_debug(self.config.debug)

        with tlog.Span("engine_startup"):
            w, h = self.config.specs.resolution
            tlog.info(f"Initializing animation engine | {w}x{h} @ {self.clock.frame_rate} fps")

    @property
    def frame(self) -> int:
        return self.clock.frame

    def animate(self, target, animation, callback=None) -> CompletionHandle:
        return self.scheduler.animate(target, animation, callback)

    def timer(self, seconds: float) -> CompletionHandle:
        return self.scheduler.timer(seconds)

    def add_component(self, comp: Component):
        with tlog.Span(f"mounting_{comp.name}"):
            comp.on_init(self)
            self.components.append(comp)

    def remove_component(self, comp: Component):
        if comp in self.components:
            self.components.remove(comp)
            comp.on_destroy()
            tlog.info(f"Removed component {comp.name}")

    def step(self, canvas=None):
        self.clock.advance()
        tlog.set_tick(self.clock.frame)
        self.scheduler.update()

        dt = 1.0 / self.clock.frame_rate
        for comp in self.components[:]:
            if comp.enabled:
                comp.on_update(dt)

        if canvas is not None:
            for comp in self.components:
                if comp.enabled:
                    comp.on_render_ui(canvas)

        self.run_heartbeat()

    def run_heartbeat(self):
        if self.clock.frame % self.config.heartbeat_ticks == 0:
            tlog.info(f"Heartbeat: t={self.clock.seconds:.2f}s | Animations: {len(self.scheduler.animations)} "
                      f"| Timers: {len(self.scheduler.timers)} | Components: {len(self.components)}")

    def busy(self) -> bool:
        if self.scheduler.pending():
            return True
        return any(getattr(comp, "is_animating", lambda: False)() for comp in self.components)

    def run(self, frames: Optional[int] = None, until: Optional[CompletionHandle] = None,
            canvas_factory: Optional[Callable[[], object]] = None) -> int:
        """Step until ``frames`` ticks ran or ``until`` resolved.

        Without ``frames`` the loop also stops once nothing is left to play.

        Returns the number of ticks run.
        """
        if frames is not None and frames < 0:
            raise ConfigurationError(f"frames must not be negative, got {frames!r}")
        tlog.info("Entering main loop")
        ran = 0
        while frames is None or ran < frames:
            if until is not None and until.done():
                break
            if frames is None and not self.busy():
                break
            self.step(canvas_factory() if canvas_factory else None)
            ran += 1
        tlog.info(f"Leaving main loop after {ran} ticks at frame {self.clock.frame}")
        return ran
