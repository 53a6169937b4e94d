import math
from typing import Optional, Sequence, Tuple

import numpy as np

from kinetic import script
from kinetic.animatable import Animatable
from kinetic.animation import PropertyAnimation
from kinetic.clock import FrameClock, VideoSpecs
from kinetic.completion import CompletionHandle
from kinetic.errors import ConfigurationError
from kinetic.numeric import ExponentialAnimation, HarmonicAnimation


class View(Animatable):
    """2-D camera that makes it easy to zoom into points of the plane.

    The origin is drawn at the centre of the canvas with the y axis pointing
    up. ``zoom_mode`` decides whether the factors given to the zoom methods are
    relative to the current ``zoom_factor`` or absolute.
    """

    def __init__(self, clock: Optional[FrameClock] = None, zoom_center=(0.0, 0.0), zoom_factor=1.0,
                 zoom_mode="relative", name="View"):
        super().__init__(clock, name)
        if zoom_mode not in ("relative", "absolute"):
            raise ConfigurationError(f"zoom_mode must be 'relative' or 'absolute', got {zoom_mode!r}")
        if zoom_factor <= 0:
            raise ConfigurationError(f"zoom_factor must be positive, got {zoom_factor!r}")
        self.zoom_mode = zoom_mode
        self.zoom_center = [float(zoom_center[0]), float(zoom_center[1])]
        self.zoom_factor = float(zoom_factor)

    def transform(self, resolution: Optional[Tuple[int, int]] = None) -> np.ndarray:
        """World-to-screen matrix in homogeneous coordinates."""
        if resolution is None:
            resolution = self.engine.config.specs.resolution if self.engine is not None else VideoSpecs().resolution
        w, h = resolution
        f = self.zoom_factor
        cx, cy = self.zoom_center
        return np.array([
            [f, 0.0, w / 2 - f * cx],
            [0.0, -f, h / 2 + f * cy],
            [0.0, 0.0, 1.0],
        ])

    def apply(self, width: int, height: int) -> np.ndarray:
        """Advance this view's animations, then return its matrix for a ``width`` x ``height`` frame."""
        self.update_animations()
        return self.transform((width, height))

    def to_screen(self, point: Sequence[float], resolution: Optional[Tuple[int, int]] = None) -> np.ndarray:
        x, y, _ = self.transform(resolution) @ np.array([point[0], point[1], 1.0])
        return np.array([x, y])

    def move_to(self, duration: float, zoom_center) -> CompletionHandle:
        return self.animate(HarmonicAnimation("zoom_center", duration, list(zoom_center)))

    def move_by(self, duration: float, amount) -> CompletionHandle:
        return self.move_to(duration, [self.zoom_center[0] + amount[0], self.zoom_center[1] + amount[1]])

    def zoom(self, duration: float, zoom_factor: float) -> CompletionHandle:
        final = self._to_absolute(zoom_factor)
        return self.animate(ExponentialAnimation("zoom_factor", duration, final).harmonize())

    def zoom_to_point(self, duration: float, zoom_center, zoom_factor: float) -> CompletionHandle:
        return self._zoom_to(duration, zoom_center, self._to_absolute(zoom_factor))

    def jump_to_point(self, duration: float, zoom_center, zoom_factor: float) -> CompletionHandle:
        """Zoom out until both points are visible, then zoom into the target while moving there."""
        f_b = self._to_absolute(zoom_factor)
        z_a, f_a = self.zoom_center, self.zoom_factor
        distance = math.hypot(zoom_center[0] - z_a[0], zoom_center[1] - z_a[1])
        if distance == 0:
            return self._zoom_to(duration, zoom_center, f_b)

        z_m, f_m = self._intermediate(zoom_center, f_b)
        if f_m >= min(f_a, f_b):
            # Both points already fit on screen
            return self._zoom_to(duration, zoom_center, f_b)
        # Instant when the zoom changes direction
        change = duration * math.log(f_m / f_a) / math.log(f_m * f_m / (f_a * f_b))

        async def jump():
            await self._zoom_to(change, z_m, f_m)
            await self._zoom_to(duration - change, zoom_center, f_b)
            return self

        return script.run(jump(), label=f"{self.name} jump")

    def _to_absolute(self, zoom_factor):
        return zoom_factor * self.zoom_factor if self.zoom_mode == "relative" else zoom_factor

    def _zoom_to(self, duration, z_b, f_b):
        if f_b == self.zoom_factor:
            return self.move_to(duration, z_b)
        animation = self._translation(duration, z_b, f_b).parallel(
            ExponentialAnimation("zoom_factor", duration, f_b))
        return self.animate(animation.harmonize())

    def _translation(self, duration, z_b, f_b):
        z_a = list(self.zoom_center)
        f_a = self.zoom_factor

        # Keeps the on-screen motion in step with the zoom; reads the zoom
        # factor that the parallel exponential animation wrote just before.
        def center(progress, initial):
            f_t = self.zoom_factor
            k = (1 - f_a / f_t) / (1 - f_a / f_b)
            return [z_a[i] + k * (z_b[i] - z_a[i]) for i in range(2)]

        return PropertyAnimation("zoom_center", duration, center)

    def _intermediate(self, z_b, f_b):
        z_a = self.zoom_center
        f_a = self.zoom_factor

        # Zooming to the inverse of the distance (scaled) shows both points
        f_m = 0.25 / math.hypot(z_b[0] - z_a[0], z_b[1] - z_a[1])

        # The centre for which the peak translational speed of both zooms matches
        w_a = (1 / f_m - 1 / f_b) * math.log(f_a / f_m)
        w_b = (1 / f_a - 1 / f_m) * math.log(f_m / f_b)
        z_m = [(w_a * z_a[i] + w_b * z_b[i]) / (w_a + w_b) for i in range(2)]
        return z_m, f_m
