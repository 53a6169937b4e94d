class AnimationError(Exception):
    """Base class of every error raised by the animation engine."""


class ConfigurationError(AnimationError, ValueError):
    """A template, clock or engine was built from invalid values."""


class InvalidDuration(ConfigurationError):
    pass


class InvalidPropertySet(ConfigurationError):
    pass


class InvalidEndpoints(ConfigurationError):
    pass


class RuntimeInvariantViolation(AnimationError, RuntimeError):
    """An engine invariant was broken. Never absorbed by the scheduler."""


class UserCallbackError(AnimationError):
    """Wraps an exception raised by an update function or completion callback.

    The wrapped exception is kept as ``__cause__``.
    """

    def __init__(self, message, target=None):
        super().__init__(message)
        self.target = target


class AnimationCancelled(AnimationError):
    pass


class HandleNotReady(AnimationError):
    pass
