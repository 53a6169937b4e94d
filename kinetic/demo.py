import argparse

from kinetic import script
from kinetic.animatable import Animatable
from kinetic.animation import Animation, concat
from kinetic.clock import VideoSpecs
from kinetic.engine import Engine, EngineConfig
from kinetic.numeric import LinearAnimation
from kinetic.view import View


class Marker(Animatable):
    """A point of interest which pulses while the camera flies towards it."""

    def __init__(self, position):
        super().__init__(name="Marker")
        self.position = list(position)
        self.radius = 0.0
        self.flashes = 0

    def show(self, canvas):
        canvas.append((self.name, tuple(self.position), round(self.radius, 4)))


def flash(duration, times):
    """Counts ``times`` flashes at evenly spaced instants; needs exact key frames."""
    instants = [(i + 1) / times for i in range(times)]

    def update(target, progress, initial):
        target.flashes = initial["flashes"] + sum(progress >= t for t in instants)

    return Animation(duration, update, ["flashes"], instants)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Headless camera fly-through driven by the animation engine.")
    parser.add_argument("--duration", type=float, default=6.0, help="length of the jump, in seconds")
    parser.add_argument("--production", action="store_true", help="render at 1920x1080, 60 fps")
    parser.add_argument("--log", default=None, help="write the trace log to this file")
    args = parser.parse_args(argv)

    specs = VideoSpecs.production() if args.production else VideoSpecs()
    engine = Engine(EngineConfig(specs=specs, log_path=args.log))

    target = (0.3512238, 0.4245845)
    view = View(zoom_factor=200.0)
    marker = Marker(target)
    engine.add_component(view)
    engine.add_component(marker)

    async def fly():
        await engine.timer(0.5)
        marker.animate(concat(LinearAnimation("radius", 0.5, 1.0), LinearAnimation("radius", 0.5, 0.0, start=1.0)))
        marker.animate(flash(1.0, 4).harmonize())
        await view.jump_to_point(args.duration, target, 50.0)
        return engine.frame

    done = script.run(fly())
    frames = []
    engine.run(until=done, canvas_factory=lambda: frames)

    cx, cy = view.zoom_center
    print(f"frames: {done.result()}")
    print(f"center: ({cx:.7f}, {cy:.7f})")
    print(f"zoom:   {view.zoom_factor:.3f}")
    print(f"flashes: {marker.flashes}")


if __name__ == "__main__":
    main()
