"""
Event bus for cross-mediator communication.

One bus is created by ``create_datalake_lib`` and handed to every component
that publishes, so all users of a library instance share the same channel.
Delivery is in subscription order; a listener that raises is logged and the
remaining listeners still run. Coroutine listeners are scheduled on the
running loop and their failures are logged the same way.
"""

import asyncio
import inspect
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Set

from datalake_mediator.events.models import BucketNotificationEvent, UploadEvent

logger = logging.getLogger(__name__)

FILE_UPLOADED = "file:uploaded"
BUCKET_NOTIFICATION = "bucket:notification"

UploadListener = Callable[[UploadEvent], Any]
NotificationListener = Callable[[BucketNotificationEvent], Any]


def _listener_name(listener: Callable[[Any], Any]) -> str:
    return getattr(listener, "__qualname__", repr(listener))


class MediatorEventBus:
    """In-process publish/subscribe channel with typed helpers."""

    def __init__(self):
        self._listeners: Dict[str, List[Callable[[Any], Any]]] = defaultdict(list)
        self._pending: Set[asyncio.Future] = set()

    def on(self, event_name: str, listener: Callable[[Any], Any]) -> "MediatorEventBus":
        """Subscribe a listener to a named event."""
        self._listeners[event_name].append(listener)
        return self

    def emit(self, event_name: str, event: Any) -> bool:
        """Deliver an event to every current listener.

        Plain listeners run before ``emit`` returns. Coroutine listeners are
        scheduled as tasks; ``drain`` waits for them.

        Returns:
            True if the event had listeners
        """
        listeners = list(self._listeners.get(event_name, ()))
        for listener in listeners:
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    self._schedule(event_name, listener, result)
            except Exception as e:
                self._log_failure(event_name, listener, e)
        return bool(listeners)

    async def drain(self) -> None:
        """Wait for every scheduled coroutine listener to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def listener_count(self, event_name: str) -> int:
        """Number of listeners subscribed to a named event."""
        return len(self._listeners.get(event_name, ()))

    def emit_upload(self, event: UploadEvent) -> None:
        """Emit an upload event when a file is uploaded."""
        self.emit(FILE_UPLOADED, event)

    def emit_notification(self, event: BucketNotificationEvent) -> None:
        """Emit a bucket notification event."""
        self.emit(BUCKET_NOTIFICATION, event)

    def on_upload(self, listener: UploadListener) -> "MediatorEventBus":
        """Register a listener for upload events."""
        return self.on(FILE_UPLOADED, listener)

    def on_notification(self, listener: NotificationListener) -> "MediatorEventBus":
        """Register a listener for bucket notification events."""
        return self.on(BUCKET_NOTIFICATION, listener)

    def _schedule(self, event_name: str, listener: Callable[[Any], Any], awaitable: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Emitted outside an event loop, nowhere to run the listener
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise

        future = asyncio.ensure_future(awaitable, loop=loop)

        self._pending.add(future)

        def _done(fut: asyncio.Future) -> None:
            self._pending.discard(fut)
            if fut.cancelled():
                return
            error = fut.exception()
            if error is not None:
                self._log_failure(event_name, listener, error)

        future.add_done_callback(_done)

    @staticmethod
    def _log_failure(event_name: str, listener: Callable[[Any], Any], error: BaseException) -> None:
        logger.error(
            f"Event listener failed for {event_name}: {error}",
            extra={
                "event_name": event_name,
                "listener": _listener_name(listener),
                "error": str(error),
            },
            exc_info=(type(error), error, error.__traceback__),
        )
