import math
import numbers
from bisect import bisect_left
from functools import reduce
from types import MappingProxyType
from typing import Callable, Iterable, Optional, Tuple

from kinetic.errors import ConfigurationError, InvalidDuration, InvalidPropertySet

# (target, progress, initial_values) -> None
UpdateFunction = Callable[[object, float, object], None]

KEY_TOLERANCE = 1e-12

# Handed to composite update functions between keys: no child key to pin
_COMPUTED = MappingProxyType({})


def harmonic_ease(t):
    return 0.5 * (1 + math.sin(math.pi * (t - 0.5)))


def harmonic_ease_inverse(t):
    return 0.5 + math.asin(max(-1.0, min(1.0, 2 * t - 1))) / math.pi


def normalize_keys(values: Iterable[float]) -> Tuple[float, ...]:
    """Sort key progress values, merge near-duplicates and pin the last one to 1."""
    keys = []
    for v in sorted(min(1.0, float(v)) for v in values):
        if v <= 0.0:
            continue
        if keys and v - keys[-1] <= KEY_TOLERANCE:
            continue
        keys.append(v)
    if not keys or 1.0 - keys[-1] > KEY_TOLERANCE:
        raise ConfigurationError(f"key progress values must contain 1, got {keys}")
    keys[-1] = 1.0
    return tuple(keys)


def _check_duration(duration):
    if isinstance(duration, bool) or not isinstance(duration, numbers.Real):
        raise InvalidDuration(f"duration must be a real number of seconds, got {duration!r}")
    if not math.isfinite(duration) or duration <= 0:
        raise InvalidDuration(f"duration must be positive and finite, got {duration!r}")
    return float(duration)


def _check_properties(properties):
    if isinstance(properties, str):
        raise InvalidPropertySet(f"picked properties must be a collection of names, got the string {properties!r}")
    try:
        picked = frozenset(properties)
    except TypeError as e:
        raise InvalidPropertySet(f"picked properties must be hashable names: {e}") from e
    for name in picked:
        if not isinstance(name, str) or not name.isidentifier():
            raise InvalidPropertySet(f"{name!r} is not a valid property name")
    return picked


class Animation:
    """Immutable description of how a target changes as progress goes 0 -> 1.

    ``update_target(target, progress, initial_values)`` writes the target for a
    given progress. ``initial_values`` is the snapshot of every picked property
    taken once when playback starts.

    ``key_progress_values`` lists the progress values that playback must
    evaluate exactly, whatever the frame rate; it always ends with 1.
    """

    def __init__(self, duration: float, update_target: UpdateFunction, picked_properties: Iterable[str] = (),
                 key_progress_values: Iterable[float] = (1.0,)):
        if not callable(update_target):
            raise ConfigurationError(f"update_target must be callable, got {update_target!r}")
        self._duration = _check_duration(duration)
        self._update_target = update_target
        self._picked = _check_properties(picked_properties)
        self._keys = normalize_keys(key_progress_values)

    def __repr__(self):
        return f"<{type(self).__name__} {self._duration:g}s picks={sorted(self._picked)} keys={len(self._keys)}>"

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def picked_properties(self) -> frozenset:
        return self._picked

    @property
    def key_progress_values(self) -> Tuple[float, ...]:
        return self._keys

    def update_target(self, target, progress: float, initial_values):
        self._update_target(target, progress, initial_values)

    def check_initial(self, initial_values):
        """Validate the snapshot a playback will start from. No-op by default."""

    def concat(self, other: "Animation") -> "Animation":
        """Play ``other`` after this one.

        Both halves read the snapshot taken at the start of the whole
        composite: ``other`` never sees what this animation wrote.
        """
        return _Composite(self, other, *_concat_parts(self, other))

    def parallel(self, other: "Animation") -> "Animation":
        """Play ``other`` at the same time as this one.

        The shorter one runs over the first part of the progress range and is
        then left at its final value. With equal durations this one counts as
        the longer, so it writes last.
        """
        return _Composite(self, other, *_parallel_parts(self, other))

    def time_transform(self, transform: Callable[[float], float],
                       inverse: Optional[Callable[[float], float]] = None) -> "Animation":
        """Remap progress through ``transform`` before evaluating.

        ``transform`` must map [0, 1] onto [0, 1] without decreasing. Without an
        explicit ``inverse`` the key progress values are remapped by bisection.
        """
        if not callable(transform):
            raise ConfigurationError("transform must be callable")
        if inverse is None:
            inverse = _bisect_inverse(transform)
        inner = self

        def update(target, progress, initial_values, exact):
            inner.update_target(target, exact[0] if 0 in exact else transform(progress), initial_values)

        keys = [(inverse(k), {0: k}) for k in self._keys]
        return _Derived(inner, self._duration, update, self._picked, keys)

    def harmonize(self) -> "Animation":
        """Ease in and out: progress runs through a half sine wave."""
        return self.time_transform(harmonic_ease, harmonic_ease_inverse)


class _Derived(Animation):
    """Animation built from others; validates the snapshot through its children.

    ``keys`` pairs each composite key with the exact progress values its
    children must see there, as ``{slot: child_key}``. At a key the update
    function receives that mapping so children are evaluated at their own
    keys rather than at a recomputed float; elsewhere it receives an empty one.
    """

    def __init__(self, children, duration, update, picked, keys):
        keys = list(keys)
        super().__init__(duration, update, picked, [k for k, _ in keys])
        self._children = children if isinstance(children, tuple) else (children,)
        self._exact = {}
        for raw, slots in keys:
            if raw <= 0.0:
                continue
            exact = self._exact.setdefault(self._nearest_key(raw), {})
            for slot, child_key in slots.items():
                exact.setdefault(slot, child_key)

    def _nearest_key(self, raw):
        i = bisect_left(self._keys, raw)
        candidates = self._keys[max(0, i - 1):i + 1]
        return min(candidates, key=lambda k: abs(k - raw))

    def update_target(self, target, progress, initial_values):
        self._update_target(target, progress, initial_values, self._exact.get(progress, _COMPUTED))

    def check_initial(self, initial_values):
        for child in self._children:
            child.check_initial(initial_values)


class _Composite(_Derived):
    def __init__(self, first, second, duration, update, keys):
        super().__init__((first, second), duration, update, first.picked_properties | second.picked_properties, keys)


def _concat_parts(a: Animation, b: Animation):
    duration = a.duration + b.duration
    # Progress at which the first animation stops and the second begins
    seam = a.duration / duration

    def update(target, progress, initial_values, exact):
        if 0 in exact:
            a.update_target(target, exact[0], initial_values)
        elif 1 in exact:
            b.update_target(target, exact[1], initial_values)
        elif progress <= seam:
            a.update_target(target, progress / seam, initial_values)
        else:
            b.update_target(target, (progress - seam) / (1 - seam), initial_values)

    keys = [(seam * k, {0: k}) for k in a.key_progress_values]
    keys += [(seam + (1 - seam) * k, {1: k}) for k in b.key_progress_values]
    return duration, update, keys


def _parallel_parts(a: Animation, b: Animation):
    duration = max(a.duration, b.duration)
    longest, shortest = (a, b) if a.duration >= b.duration else (b, a)
    shortest_end = shortest.duration / duration

    # Slot 0 is the shorter animation, slot 1 the longer
    def update(target, progress, initial_values, exact):
        if 0 in exact:
            shortest.update_target(target, exact[0], initial_values)
        elif progress <= shortest_end:
            shortest.update_target(target, progress / shortest_end, initial_values)
        longest.update_target(target, exact[1] if 1 in exact else progress, initial_values)

    keys = [(shortest_end * k, {0: k}) for k in shortest.key_progress_values]
    keys += [(k, {1: k}) for k in longest.key_progress_values]
    return duration, update, keys


def _bisect_inverse(transform, iterations=60):
    def inverse(value):
        lo, hi = 0.0, 1.0
        for _ in range(iterations):
            mid = (lo + hi) / 2
            if transform(mid) < value:
                lo = mid
            else:
                hi = mid
        return hi
    return inverse


def concat(first: Animation, *rest: Animation) -> Animation:
    return reduce(Animation.concat, rest, first)


def parallel(first: Animation, *rest: Animation) -> Animation:
    return reduce(Animation.parallel, rest, first)


def harmonize(animation: Animation) -> Animation:
    return animation.harmonize()


class PropertyAnimation(Animation):
    """Animates one property as ``value_function(progress, initial_value)``."""

    def __init__(self, prop: str, duration: float, value_function: Callable[[float, object], object]):
        if not callable(value_function):
            raise ConfigurationError(f"value_function must be callable, got {value_function!r}")
        self.prop = prop

        def update(target, progress, initial_values):
            setattr(target, prop, value_function(progress, initial_values[prop]))

        super().__init__(duration, update, [prop])
