"""Pytest configuration and shared fixtures."""

import asyncio
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

import pytest

from datalake_mediator.datalake.exceptions import ObjectNotFoundError, SubscriptionOpenError
from datalake_mediator.datalake.models import ObjectStat
from datalake_mediator.datalake.processors import ProcessorRegistry
from datalake_mediator.datalake.storage import DatalakeStorage, NotificationStream
from datalake_mediator.events.bus import MediatorEventBus

_STOP = object()


class FakeNotificationStream(NotificationStream):
    """Notification stream driven by the test."""

    def __init__(self, bucket: str, prefix: str, suffix: str):
        self.bucket = bucket
        self.prefix = prefix
        self.suffix = suffix
        self.stopped = False
        self._events: asyncio.Queue = asyncio.Queue()
        self._errors: asyncio.Queue = asyncio.Queue()

    def push(self, record: Dict[str, Any]) -> None:
        self._events.put_nowait(record)

    def fail(self, error: BaseException) -> None:
        self._errors.put_nowait(error)

    async def events(self):
        while True:
            item = await self._events.get()
            if item is _STOP:
                return
            yield item

    async def errors(self):
        while True:
            item = await self._errors.get()
            if item is _STOP:
                return
            yield item

    def stop(self) -> None:
        self.stopped = True
        self._events.put_nowait(_STOP)
        self._errors.put_nowait(_STOP)


class FakeStorage(DatalakeStorage):
    """In-memory datalake storage recording every call."""

    def __init__(self):
        self.buckets: Set[str] = set()
        self.objects: Dict[Tuple[str, str], bytes] = {}
        self.content_types: Dict[Tuple[str, str], str] = {}
        self.object_metadata: Dict[Tuple[str, str], Dict[str, str]] = {}
        self.streams: List[FakeNotificationStream] = []
        self.subscribe_errors: Dict[str, Exception] = {}
        self.fetch_error: Optional[Exception] = None
        self.fetched: List[Tuple[str, str, str]] = []
        self.removed: List[str] = []

    def add_object(self, bucket: str, key: str, data: bytes, content_type: str = "application/octet-stream"):
        self.buckets.add(bucket)
        self.objects[(bucket, key)] = data
        self.content_types[(bucket, key)] = content_type

    def streams_for(self, bucket: str) -> List[FakeNotificationStream]:
        return [s for s in self.streams if s.bucket == bucket]

    async def subscribe_to_object_created(self, bucket: str, prefix: str = "", suffix: str = ""):
        if bucket in self.subscribe_errors:
            raise SubscriptionOpenError(bucket, str(self.subscribe_errors[bucket]))
        stream = FakeNotificationStream(bucket, prefix, suffix)
        self.streams.append(stream)
        return stream

    async def fetch_object_to_local_path(self, bucket: str, key: str, local_path: str) -> None:
        self.fetched.append((bucket, key, local_path))
        if self.fetch_error is not None:
            raise self.fetch_error
        if (bucket, key) not in self.objects:
            raise ObjectNotFoundError(f"Object {key} not found in bucket {bucket}", bucket, key)
        Path(local_path).parent.mkdir(parents=True, exist_ok=True)
        Path(local_path).write_bytes(self.objects[(bucket, key)])

    async def remove_local_path(self, local_path: str) -> None:
        self.removed.append(local_path)
        os.remove(local_path)

    async def bucket_exists(self, bucket: str) -> bool:
        return bucket in self.buckets

    async def make_bucket(self, bucket: str) -> None:
        self.buckets.add(bucket)

    async def stat_object(self, bucket: str, key: str) -> Optional[ObjectStat]:
        if (bucket, key) not in self.objects:
            return None
        return ObjectStat(
            bucket=bucket,
            name=key,
            size=len(self.objects[(bucket, key)]),
            content_type=self.content_types.get((bucket, key)),
            etag="etag-1",
            last_modified=datetime(2025, 1, 1, tzinfo=timezone.utc),
            metadata=self.object_metadata.get((bucket, key), {}),
        )

    async def put_object(self, bucket, key, data, length, content_type, metadata) -> None:
        self.objects[(bucket, key)] = data.read(length)
        self.content_types[(bucket, key)] = content_type
        self.object_metadata[(bucket, key)] = dict(metadata)

    async def fput_object(self, bucket, key, file_path, content_type, metadata) -> None:
        self.objects[(bucket, key)] = Path(file_path).read_bytes()
        self.content_types[(bucket, key)] = content_type
        self.object_metadata[(bucket, key)] = dict(metadata)

    async def get_object_bytes(self, bucket: str, key: str) -> bytes:
        return self.objects[(bucket, key)]

    async def presigned_get_url(self, bucket: str, key: str, expires: timedelta) -> str:
        return f"http://fake-datalake/{bucket}/{key}?expires={int(expires.total_seconds())}"

    def get_backend_name(self) -> str:
        return "fake"


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def event_bus() -> MediatorEventBus:
    return MediatorEventBus()


@pytest.fixture
def registry() -> ProcessorRegistry:
    return ProcessorRegistry()


@pytest.fixture
def staging_dir(tmp_path) -> Path:
    return tmp_path / "staging"


@pytest.fixture
def settle():
    """Let queued notifications reach the dispatcher and finish."""

    async def _settle(manager) -> None:
        for _ in range(5):
            await asyncio.sleep(0)
        await manager.wait_idle()

    return _settle
