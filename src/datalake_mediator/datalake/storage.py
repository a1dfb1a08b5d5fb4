"""Abstract datalake storage interface."""

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any, AsyncIterator, BinaryIO, Dict, Optional

from datalake_mediator.datalake.models import ObjectStat


class NotificationStream(ABC):
    """Live object-created subscription on one bucket.

    Events and transport errors travel on separate channels. Both iterators
    are lazy, unbounded and single-use, and both end once ``stop`` is called.
    """

    @abstractmethod
    def events(self) -> AsyncIterator[Dict[str, Any]]:
        """Yield raw S3-style event records as they arrive."""
        pass

    @abstractmethod
    def errors(self) -> AsyncIterator[BaseException]:
        """Yield transport errors reported by the underlying poll loop."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop polling and end both channels."""
        pass


class DatalakeStorage(ABC):
    """Abstract base class for datalake storage backends."""

    @abstractmethod
    async def subscribe_to_object_created(
        self, bucket: str, prefix: str = "", suffix: str = ""
    ) -> NotificationStream:
        """Open an object-created subscription on a bucket.

        Raises:
            SubscriptionOpenError: If the subscription cannot be opened
        """
        pass

    @abstractmethod
    async def fetch_object_to_local_path(self, bucket: str, key: str, local_path: str) -> None:
        """Download an object to a local file.

        Raises:
            StagingError: If the object cannot be fetched
        """
        pass

    @abstractmethod
    async def remove_local_path(self, local_path: str) -> None:
        """Delete a local file written by ``fetch_object_to_local_path``."""
        pass

    @abstractmethod
    async def bucket_exists(self, bucket: str) -> bool:
        """Return True if the bucket exists."""
        pass

    @abstractmethod
    async def make_bucket(self, bucket: str) -> None:
        """Create a bucket."""
        pass

    @abstractmethod
    async def stat_object(self, bucket: str, key: str) -> Optional[ObjectStat]:
        """Get object metadata, or None if the object does not exist."""
        pass

    @abstractmethod
    async def put_object(
        self,
        bucket: str,
        key: str,
        data: BinaryIO,
        length: int,
        content_type: str,
        metadata: Dict[str, str],
    ) -> None:
        """Upload a stream as an object."""
        pass

    @abstractmethod
    async def fput_object(
        self, bucket: str, key: str, file_path: str, content_type: str, metadata: Dict[str, str]
    ) -> None:
        """Upload a local file as an object."""
        pass

    @abstractmethod
    async def get_object_bytes(self, bucket: str, key: str) -> bytes:
        """Read a whole object into memory."""
        pass

    @abstractmethod
    async def presigned_get_url(self, bucket: str, key: str, expires: timedelta) -> str:
        """Generate a presigned download URL."""
        pass

    @abstractmethod
    def get_backend_name(self) -> str:
        """Return backend identifier."""
        pass
