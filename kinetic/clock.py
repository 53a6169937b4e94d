import math
from dataclasses import dataclass, field
from typing import Tuple

from kinetic.errors import ConfigurationError


@dataclass(frozen=True)
class VideoSpecs:
    # Low quality for fast previews; see production() for the export preset
    resolution: Tuple[int, int] = (640, 360)
    frame_rate: int = 30

    def __post_init__(self):
        if isinstance(self.frame_rate, bool) or not isinstance(self.frame_rate, int) or self.frame_rate <= 0:
            raise ConfigurationError(f"frame_rate must be a positive integer, got {self.frame_rate!r}")
        w, h = self.resolution
        if w <= 0 or h <= 0:
            raise ConfigurationError(f"resolution must be positive, got {self.resolution!r}")

    @classmethod
    def production(cls):
        return cls(resolution=(1920, 1080), frame_rate=60)


@dataclass
class FrameClock:
    """Discrete tick counter owned by the host loop."""
    frame_rate: int = 30
    frame: int = field(default=0)

    def __post_init__(self):
        if isinstance(self.frame_rate, bool) or not isinstance(self.frame_rate, int) or self.frame_rate <= 0:
            raise ConfigurationError(f"frame_rate must be a positive integer, got {self.frame_rate!r}")

    @classmethod
    def from_specs(cls, specs: VideoSpecs):
        return cls(frame_rate=specs.frame_rate)

    def advance(self, frames: int = 1) -> int:
        if frames < 0:
            raise ConfigurationError("the frame clock never runs backwards")
        self.frame += frames
        return self.frame

    def to_frames(self, seconds: float) -> int:
        return math.floor(seconds * self.frame_rate)

    @property
    def seconds(self) -> float:
        return self.frame / self.frame_rate
