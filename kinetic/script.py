"""Drive coroutines that ``await`` completion handles.

There is no event loop: a coroutine is stepped synchronously whenever the
handle it waits on resolves, which happens inside the scheduler's tick::

    async def intro(view):
        await scheduler.timer(1)
        await view.zoom(2, 4)

    done = script.run(intro(view))
"""
from typing import Coroutine

from kinetic.completion import CompletionHandle
from kinetic.errors import AnimationCancelled, ConfigurationError, RuntimeInvariantViolation, UserCallbackError


def run(coro: Coroutine, label: str = None) -> CompletionHandle:
    """Start ``coro`` now; the returned handle resolves with its return value."""
    handle = CompletionHandle(label or getattr(coro, "__qualname__", "script"))
    handle.bind_canceller(lambda: _cancel(coro, handle))
    _step(coro, handle)
    return handle


def _step(coro, handle):
    if handle.done():
        return
    try:
        awaited = coro.send(None)
    except StopIteration as stop:
        handle.set_result(stop.value)
        return
    except RuntimeInvariantViolation:
        raise
    except Exception as e:
        error = UserCallbackError(f"script {handle.label} raised {type(e).__name__}: {e}")
        error.__cause__ = e
        handle.set_exception(error)
        return
    if not isinstance(awaited, CompletionHandle):
        coro.close()
        handle.set_exception(ConfigurationError(f"script {handle.label} awaited {awaited!r}, not a CompletionHandle"))
        return
    awaited.add_done_callback(lambda _: _step(coro, handle))


def _cancel(coro, handle):
    coro.close()
    handle.set_exception(AnimationCancelled(f"script {handle.label} cancelled"))


def gather(*handles: CompletionHandle) -> CompletionHandle:
    """Resolve with every result, in order, once all ``handles`` resolve.

    Fails with the first failure seen.
    """
    combined = CompletionHandle(f"gather of {len(handles)}")
    remaining = [len(handles)]

    def on_done(h):
        if combined.done():
            return
        if h.exception() is not None:
            combined.set_exception(h.exception())
            return
        remaining[0] -= 1
        if remaining[0] == 0:
            combined.set_result([x.result() for x in handles])

    if not handles:
        combined.set_result([])
    for h in handles:
        h.add_done_callback(on_done)
    return combined
