from typing import Callable, List, Optional

from kinetic.errors import AnimationCancelled, HandleNotReady, RuntimeInvariantViolation
from kinetic.lib import tlog

_PENDING, _RESOLVED, _FAILED = "pending", "resolved", "failed"


class CompletionHandle:
    """Single-resolution notification returned by every registration call.

    Resolved (or failed) exactly once by the scheduler. A second resolution
    is an engine bug and raises RuntimeInvariantViolation. Coroutines run by
    ``kinetic.script.run`` may ``await`` a handle.
    """

    def __init__(self, label: str = "animation"):
        self.label = label
        self._state = _PENDING
        self._result = None
        self._exception: Optional[BaseException] = None
        self._callbacks: List[Callable] = []
        self._canceller: Optional[Callable[[], None]] = None

    def __repr__(self):
        return f"<CompletionHandle {self.label} {self._state}>"

    def done(self) -> bool:
        return self._state != _PENDING

    def cancelled(self) -> bool:
        return self._state == _FAILED and isinstance(self._exception, AnimationCancelled)

    def result(self):
        if self._state == _PENDING:
            raise HandleNotReady(f"{self.label} has not finished yet")
        if self._exception is not None:
            raise self._exception
        return self._result

    def exception(self) -> Optional[BaseException]:
        if self._state == _PENDING:
            raise HandleNotReady(f"{self.label} has not finished yet")
        return self._exception

    def add_done_callback(self, fn: Callable[["CompletionHandle"], None]):
        if self.done():
            self._invoke(fn)
        else:
            self._callbacks.append(fn)

    def set_result(self, result=None):
        self._settle(_RESOLVED, result, None)

    def set_exception(self, exception: BaseException):
        self._settle(_FAILED, None, exception)

    def bind_canceller(self, canceller: Callable[[], None]):
        self._canceller = canceller

    def cancel(self) -> bool:
        """Ask whoever owns the playback to stop it; returns False if already done."""
        if self.done():
            return False
        if self._canceller is None:
            self.set_exception(AnimationCancelled(f"{self.label} cancelled"))
        else:
            self._canceller()
        return True

    def _settle(self, state, result, exception):
        if self._state != _PENDING:
            raise RuntimeInvariantViolation(f"{self.label} resolved twice")
        self._state = state
        self._result = result
        self._exception = exception
        self._canceller = None
        callbacks, self._callbacks = self._callbacks, []
        for fn in callbacks:
            self._invoke(fn)

    def _invoke(self, fn):
        try:
            fn(self)
        except RuntimeInvariantViolation:
            raise
        except Exception as e:
            tlog.err(f"Done-callback of {self.label} raised {type(e).__name__}: {e}")

    def __await__(self):
        if not self.done():
            yield self
        return self.result()
