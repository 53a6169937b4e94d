import numpy as np

from kinetic.animation import Animation, harmonic_ease
from kinetic.errors import ConfigurationError, InvalidEndpoints


def linear(progress, initial, final):
    return initial + progress * (final - initial)


def harmonic(progress, initial, final):
    return initial + harmonic_ease(progress) * (final - initial)


def exponential(progress, initial, final):
    return initial * np.power(final / initial, progress)


def _as_values(value, prop):
    try:
        values = np.array(value, dtype=float)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{prop!r} must hold a number or a vector of numbers, got {value!r}") from e
    if values.ndim > 1:
        raise ConfigurationError(f"{prop!r} must be a scalar or a flat vector, got shape {values.shape}")
    return values


def write_value(target, prop, values):
    """Write a scalar, or a vector component-wise into the target's own container."""
    current = getattr(target, prop)
    if np.ndim(values) == 0:
        setattr(target, prop, float(values))
    elif isinstance(current, np.ndarray):
        current[...] = values
    elif isinstance(current, list):
        current[:] = np.asarray(values).tolist()
    else:
        setattr(target, prop, tuple(np.asarray(values).tolist()))


class NumericAnimation(Animation):
    """Moves one numeric property from ``start`` to ``end``.

    ``start`` defaults to the property's value when playback begins. ``end``
    may be a callable that receives the resolved start value. Vectors are
    interpolated component-wise.
    """

    value_function = staticmethod(linear)

    def __init__(self, prop: str, duration: float, end, start=None):
        self.prop = prop
        self._start = None if start is None else _as_values(start, prop)
        if callable(end):
            self._end_fn = end
            self._end = None
        else:
            self._end_fn = None
            self._end = _as_values(end, prop)
        super().__init__(duration, self._update, [prop])
        if self._start is not None and self._end is not None:
            self._check_endpoints(self._start, self._end)

    def endpoints(self, initial_values):
        start = self._start if self._start is not None else _as_values(initial_values[self.prop], self.prop)
        if self._end is not None:
            return start, self._end
        # A callable end sees its own copy of the start value
        return start, _as_values(self._end_fn(start.copy() if start.ndim else float(start)), self.prop)

    def check_initial(self, initial_values):
        self._check_endpoints(*self.endpoints(initial_values))

    def _check_endpoints(self, start, end):
        if start.shape != end.shape:
            raise ConfigurationError(
                f"{self.prop!r} endpoints have different shapes: {start.shape} and {end.shape}")

    def _update(self, target, progress, initial_values):
        start, end = self.endpoints(initial_values)
        write_value(target, self.prop, self.value_function(progress, start, end))


class LinearAnimation(NumericAnimation):
    value_function = staticmethod(linear)


class HarmonicAnimation(NumericAnimation):
    value_function = staticmethod(harmonic)


class ExponentialAnimation(NumericAnimation):
    """Geometric interpolation, mostly used for zooms.

    Both endpoints must be non-zero and share a sign, component by component.
    """

    value_function = staticmethod(exponential)

    def _check_endpoints(self, start, end):
        super()._check_endpoints(start, end)
        if np.any(start == 0) or np.any(end == 0):
            raise InvalidEndpoints(f"exponential {self.prop!r} cannot start or end at zero")
        if np.any(np.sign(start) != np.sign(end)):
            raise InvalidEndpoints(f"exponential {self.prop!r} endpoints must share a sign")
