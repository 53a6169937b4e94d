import pytest

from kinetic.animation import Animation
from kinetic.clock import FrameClock
from kinetic.scheduler import Scheduler


class Box:
    """Plain target object; attributes are set from keyword arguments."""

    def __init__(self, **values):
        self.__dict__.update(values)


def recorder(duration, keys=(1.0,)):
    """Animation that appends every progress it is evaluated at to ``target.seen``."""

    def update(target, progress, initial):
        target.seen.append(progress)

    return Animation(duration, update, (), keys)


def run_ticks(scheduler, n):
    for _ in range(n):
        scheduler.clock.advance()
        scheduler.update()


@pytest.fixture
def clock():
    return FrameClock(frame_rate=30)


@pytest.fixture
def scheduler(clock):
    return Scheduler(clock)
