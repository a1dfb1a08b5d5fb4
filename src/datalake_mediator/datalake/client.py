"""MinIO/S3 client for datalake operations and bucket notifications."""

import asyncio
import logging
import os
import threading
from datetime import timedelta
from typing import Any, AsyncIterator, BinaryIO, Dict, Optional, Tuple

from minio import Minio
from minio.error import S3Error

from datalake_mediator.core.config import DatalakeConfig
from datalake_mediator.datalake.exceptions import (
    BucketNotFoundError,
    ObjectNotFoundError,
    StagingError,
    SubscriptionOpenError,
)
from datalake_mediator.datalake.models import ObjectStat
from datalake_mediator.datalake.storage import DatalakeStorage, NotificationStream
from datalake_mediator.events.models import OBJECT_CREATED_EVENT

logger = logging.getLogger(__name__)

MISSING_OBJECT_CODES = frozenset({"NoSuchKey", "NoSuchObject", "NotFound"})

_STOP = object()


class MinioNotificationPoller(NotificationStream):
    """Bucket notification subscription backed by MinIO's listen API.

    The listen API is a blocking HTTP stream, so it runs on a daemon thread.
    Records and errors are handed to the event loop through two queues. When
    the stream ends or fails the thread reconnects, waiting ``retry_delay``
    seconds after a failure.
    """

    def __init__(
        self,
        client: Minio,
        bucket: str,
        prefix: str = "",
        suffix: str = "",
        events: Tuple[str, ...] = (OBJECT_CREATED_EVENT,),
        retry_delay: float = 5.0,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.bucket = bucket
        self.prefix = prefix
        self.suffix = suffix
        self.event_types = events
        self._client = client
        self._retry_delay = retry_delay
        self._loop = loop or asyncio.get_running_loop()
        self._event_queue: asyncio.Queue = asyncio.Queue()
        self._error_queue: asyncio.Queue = asyncio.Queue()
        self._stopped = threading.Event()
        self._lock = threading.Lock()
        self._iterable: Any = None
        self._thread = threading.Thread(
            target=self._run, name=f"minio-listener-{bucket}", daemon=True
        )

    def start(self) -> None:
        """Start the polling thread."""
        self._thread.start()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def stop(self) -> None:
        """Stop polling, close the open stream and end both channels."""
        if self._stopped.is_set():
            return
        self._stopped.set()

        with self._lock:
            iterable = self._iterable
            self._iterable = None
        if iterable is not None:
            try:
                iterable.__exit__(None, None, None)
            except Exception as e:
                logger.debug(
                    f"Error closing notification stream for bucket {self.bucket}: {e}",
                    extra={"bucket": self.bucket},
                )

        self._event_queue.put_nowait(_STOP)
        self._error_queue.put_nowait(_STOP)

    async def events(self) -> AsyncIterator[Dict[str, Any]]:
        while True:
            item = await self._event_queue.get()
            if item is _STOP:
                return
            yield item

    async def errors(self) -> AsyncIterator[BaseException]:
        while True:
            item = await self._error_queue.get()
            if item is _STOP:
                return
            yield item

    def _publish(self, queue: asyncio.Queue, item: Any) -> None:
        try:
            self._loop.call_soon_threadsafe(queue.put_nowait, item)
        except RuntimeError:
            # Event loop closed underneath us
            self._stopped.set()

    def _run(self) -> None:
        while not self._stopped.is_set():
            failed = False
            try:
                iterable = self._client.listen_bucket_notification(
                    bucket_name=self.bucket,
                    prefix=self.prefix,
                    suffix=self.suffix,
                    events=self.event_types,
                )
                with self._lock:
                    if self._stopped.is_set():
                        break
                    self._iterable = iterable

                with iterable:
                    for event in iterable:
                        if self._stopped.is_set():
                            break
                        for record in (event or {}).get("Records") or []:
                            self._publish(self._event_queue, record)
            except Exception as e:
                if self._stopped.is_set():
                    break
                failed = True
                self._publish(self._error_queue, e)
            finally:
                with self._lock:
                    self._iterable = None

            if failed:
                self._stopped.wait(self._retry_delay)


class MinioStorageClient(DatalakeStorage):
    """Datalake storage backed by a MinIO (or S3-compatible) server."""

    def __init__(self, client: Minio, notification_retry_delay: float = 5.0):
        """Initialize the storage wrapper.

        Args:
            client: Configured MinIO client
            notification_retry_delay: Seconds a poller waits before reconnecting
        """
        self.client = client
        self.notification_retry_delay = notification_retry_delay

    async def subscribe_to_object_created(
        self, bucket: str, prefix: str = "", suffix: str = ""
    ) -> MinioNotificationPoller:
        try:
            exists = await asyncio.to_thread(self.client.bucket_exists, bucket_name=bucket)
        except Exception as e:
            logger.error(
                f"Failed to open notification stream on bucket {bucket}: {e}",
                extra={"bucket": bucket, "error": str(e)},
            )
            raise SubscriptionOpenError(bucket, str(e)) from e

        if not exists:
            raise SubscriptionOpenError(bucket, "bucket does not exist")

        poller = MinioNotificationPoller(
            self.client,
            bucket,
            prefix=prefix,
            suffix=suffix,
            retry_delay=self.notification_retry_delay,
        )
        poller.start()
        return poller

    async def fetch_object_to_local_path(self, bucket: str, key: str, local_path: str) -> None:
        try:
            await asyncio.to_thread(
                self.client.fget_object,
                bucket_name=bucket,
                object_name=key,
                file_path=local_path,
            )
        except S3Error as e:
            if e.code == "NoSuchBucket":
                raise BucketNotFoundError(f"Bucket {bucket} not found", bucket, key) from e
            if e.code in MISSING_OBJECT_CODES:
                raise ObjectNotFoundError(
                    f"Object {key} not found in bucket {bucket}", bucket, key
                ) from e
            raise StagingError(f"Failed to fetch {key} from {bucket}: {e}", bucket, key) from e
        except Exception as e:
            raise StagingError(f"Failed to fetch {key} from {bucket}: {e}", bucket, key) from e

        logger.debug(
            f"Downloaded {key} to {local_path}",
            extra={"bucket": bucket, "object_name": key, "destination": local_path},
        )

    async def remove_local_path(self, local_path: str) -> None:
        await asyncio.to_thread(os.remove, local_path)

    async def bucket_exists(self, bucket: str) -> bool:
        return await asyncio.to_thread(self.client.bucket_exists, bucket_name=bucket)

    async def make_bucket(self, bucket: str) -> None:
        await asyncio.to_thread(self.client.make_bucket, bucket_name=bucket)

    async def stat_object(self, bucket: str, key: str) -> Optional[ObjectStat]:
        try:
            stat = await asyncio.to_thread(
                self.client.stat_object, bucket_name=bucket, object_name=key
            )
        except S3Error as e:
            if e.code in MISSING_OBJECT_CODES:
                return None
            raise

        metadata = {str(k).lower(): str(v) for k, v in (stat.metadata or {}).items()}
        return ObjectStat(
            bucket=bucket,
            name=key,
            size=stat.size or 0,
            content_type=stat.content_type,
            etag=stat.etag,
            last_modified=stat.last_modified,
            metadata=metadata,
        )

    async def put_object(
        self,
        bucket: str,
        key: str,
        data: BinaryIO,
        length: int,
        content_type: str,
        metadata: Dict[str, str],
    ) -> None:
        await asyncio.to_thread(
            self.client.put_object,
            bucket_name=bucket,
            object_name=key,
            data=data,
            length=length,
            content_type=content_type,
            metadata=metadata,
        )

    async def fput_object(
        self, bucket: str, key: str, file_path: str, content_type: str, metadata: Dict[str, str]
    ) -> None:
        await asyncio.to_thread(
            self.client.fput_object,
            bucket_name=bucket,
            object_name=key,
            file_path=file_path,
            content_type=content_type,
            metadata=metadata,
        )

    async def get_object_bytes(self, bucket: str, key: str) -> bytes:
        def _read() -> bytes:
            response = self.client.get_object(bucket_name=bucket, object_name=key)
            try:
                return response.read()
            finally:
                response.close()
                response.release_conn()

        return await asyncio.to_thread(_read)

    async def presigned_get_url(self, bucket: str, key: str, expires: timedelta) -> str:
        return await asyncio.to_thread(
            self.client.presigned_get_object,
            bucket_name=bucket,
            object_name=key,
            expires=expires,
        )

    def get_backend_name(self) -> str:
        return "minio"


def create_datalake_client(
    config: DatalakeConfig, notification_retry_delay: float = 5.0
) -> MinioStorageClient:
    """Create a MinIO-backed datalake client.

    Args:
        config: Datalake connection configuration
        notification_retry_delay: Seconds a notification poller waits before reconnecting

    Returns:
        Configured storage client
    """
    client = Minio(
        endpoint=f"{config.end_point}:{config.port}",
        access_key=config.access_key,
        secret_key=config.secret_key,
        secure=config.use_ssl,
        region=config.region,
    )
    return MinioStorageClient(client, notification_retry_delay=notification_retry_delay)
