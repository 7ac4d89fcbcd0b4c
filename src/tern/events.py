"""Error event channel.

The app reports unrecovered request errors through an ``ErrorEvents``
instance instead of inheriting from an emitter base class. Anything that
wants to hear about failures subscribes a listener::

    app = App()

    @app.on_error
    async def report(exc: Exception, ctx: Context) -> None:
        await sentry.capture(exc, path=ctx.path)

When at least one listener is registered, the dispatcher emits to the
listeners instead of logging the error itself.
"""

import logging
import threading

from tern._internal.invoke import invoke
from tern._internal.types import ErrorListener
from tern.context import Context

logger = logging.getLogger("tern.server")


class ErrorEvents:
    """Ordered list of error listeners with an ``emit`` operation.

    Listeners may be sync or async and receive ``(exc, ctx)``. A listener
    that raises is logged and does not stop the remaining listeners.

    Free-threading safety:
        Subscription takes a lock; ``emit`` iterates a snapshot, so a
        listener added mid-emit is only called on the next emit.
    """

    __slots__ = ("_listeners", "_lock")

    def __init__(self) -> None:
        self._listeners: list[ErrorListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: ErrorListener) -> ErrorListener:
        """Register *listener*. Returns it, so this works as a decorator."""
        if not callable(listener):
            msg = "Error listener must be callable"
            raise TypeError(msg)
        with self._lock:
            self._listeners.append(listener)
        return listener

    def unsubscribe(self, listener: ErrorListener) -> None:
        """Remove *listener*. Unknown listeners are ignored."""
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def listener_count(self) -> int:
        return len(self._listeners)

    def __bool__(self) -> bool:
        return bool(self._listeners)

    async def emit(self, exc: Exception, ctx: Context) -> None:
        """Call every listener with ``(exc, ctx)`` in subscription order."""
        with self._lock:
            listeners = tuple(self._listeners)
        for listener in listeners:
            try:
                await invoke(listener, exc, ctx)
            except Exception:
                logger.exception(
                    "Error listener %r failed for %s %s",
                    listener,
                    ctx.method,
                    ctx.path,
                )
