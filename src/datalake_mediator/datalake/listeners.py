"""Bucket notification listeners with plugin-based file processing."""

import asyncio
import logging
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Set

from datalake_mediator.datalake.dispatcher import NotificationDispatcher
from datalake_mediator.datalake.exceptions import TransportError
from datalake_mediator.datalake.processors import FileProcessor, ProcessorRegistry, processor_name
from datalake_mediator.datalake.storage import DatalakeStorage, NotificationStream
from datalake_mediator.events.bus import MediatorEventBus

logger = logging.getLogger(__name__)


class ListenerManager:
    """Manages bucket notification subscriptions and dispatches their events.

    At most one subscription exists per bucket. Each inbound record is
    dispatched as its own task, so slow processors on one file do not hold
    up notifications for other files.
    """

    def __init__(
        self,
        storage: DatalakeStorage,
        event_bus: MediatorEventBus,
        prefix: str = "",
        suffix: str = "",
        staging_dir: Optional[str] = None,
        registry: Optional[ProcessorRegistry] = None,
    ):
        self.storage = storage
        self.prefix = prefix
        self.suffix = suffix
        self.registry = registry or ProcessorRegistry()
        self.dispatcher = NotificationDispatcher(
            storage, self.registry, event_bus, staging_dir=staging_dir
        )
        self._registered_buckets: Set[str] = set()
        self._listeners: Dict[str, NotificationStream] = {}
        self._pumps: Dict[str, List[asyncio.Task]] = {}
        self._in_flight: Set[asyncio.Task] = set()

    def register_processor(self, processor: FileProcessor) -> None:
        """Register a file processor plugin.

        Processors are called in order of registration.
        """
        self.registry.register(processor)
        logger.debug(f"Registered file processor: {processor_name(processor)}")

    def get_processors(self) -> List[FileProcessor]:
        """Get a snapshot of the registered processors."""
        return self.registry.list_all()

    @property
    def subscribed_buckets(self) -> FrozenSet[str]:
        return frozenset(self._registered_buckets)

    async def start_listening(self, buckets: Iterable[str]) -> None:
        """Start listening for object-created notifications on the given buckets.

        Buckets that already have a listener are skipped.

        Raises:
            SubscriptionOpenError: If a subscription cannot be opened. Buckets
                opened earlier in the same call keep listening.
        """
        for bucket in buckets:
            if bucket in self._registered_buckets:
                logger.debug(f"Bucket {bucket} already has a listener")
                continue

            # Reserved before the await so overlapping calls skip it
            self._registered_buckets.add(bucket)
            try:
                listener = await self.storage.subscribe_to_object_created(
                    bucket, self.prefix, self.suffix
                )
            except Exception:
                self._registered_buckets.discard(bucket)
                raise

            self._listeners[bucket] = listener
            self._pumps[bucket] = [
                asyncio.create_task(
                    self._pump_notifications(bucket, listener),
                    name=f"notifications:{bucket}",
                ),
                asyncio.create_task(
                    self._pump_errors(bucket, listener),
                    name=f"listener-errors:{bucket}",
                ),
            ]

            logger.info(
                f"Listening for notifications on bucket {bucket}",
                extra={"bucket": bucket, "prefix": self.prefix, "suffix": self.suffix},
            )

    def stop_listening(self) -> None:
        """Stop listening on all buckets.

        Dispatches already in flight run to completion.
        """
        for bucket, listener in self._listeners.items():
            listener.stop()
            for pump in self._pumps.get(bucket, ()):
                pump.cancel()
            logger.info(f"Stopped listening on bucket {bucket}")
        self._listeners.clear()
        self._registered_buckets.clear()
        self._pumps.clear()

    async def wait_idle(self) -> None:
        """Wait for every in-flight dispatch to finish."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    async def _pump_notifications(self, bucket: str, listener: NotificationStream) -> None:
        async for record in listener.events():
            task = asyncio.create_task(self._dispatch(bucket, record))
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)

    async def _pump_errors(self, bucket: str, listener: NotificationStream) -> None:
        async for error in listener.errors():
            transport_error = TransportError(bucket, error)
            logger.error(
                str(transport_error),
                extra={"bucket": bucket, "error": str(error), "error_type": type(error).__name__},
            )

    async def _dispatch(self, bucket: str, record: Any) -> None:
        try:
            await self.dispatcher.handle_notification(bucket, record)
        except Exception as e:
            logger.error(
                f"Unhandled error dispatching notification on bucket {bucket}: {e}",
                extra={"bucket": bucket, "error": str(e)},
                exc_info=True,
            )
