"""
Bucket notification dispatcher.

Handles one object-created record at a time:
received -> staged -> classified -> fanned out -> cleaned up.

A failed fetch ends the dispatch before any processor runs. Processor
failures are logged and isolated, and the staged copy is always removed
once it exists. Nothing raised here reaches the subscription layer.
"""

import asyncio
import inspect
import logging
import re
import tempfile
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional
from urllib.parse import unquote_plus

from datalake_mediator.core.logging import object_uri_context
from datalake_mediator.datalake.exceptions import (
    BucketNotFoundError,
    MalformedEventError,
    ObjectNotFoundError,
    ProcessorError,
    StagingError,
)
from datalake_mediator.datalake.mime import detect_mime_type
from datalake_mediator.datalake.processors import ProcessorContext, ProcessorRegistry, processor_name
from datalake_mediator.datalake.storage import DatalakeStorage
from datalake_mediator.events.bus import MediatorEventBus
from datalake_mediator.events.models import OBJECT_CREATED_EVENT, BucketNotificationEvent

logger = logging.getLogger(__name__)

DEFAULT_STAGING_DIR = Path(tempfile.gettempdir()) / "datalake-mediator"


@dataclass
class DispatchOutcome:
    """Summary of one dispatched notification."""

    status: str  # processed, malformed, staging_failed, processing_failed
    bucket: str
    file: Optional[str] = None
    mime_type: Optional[str] = None
    processed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def extract_object_key(record: Any) -> str:
    """Pull the object key out of an S3-style event record.

    Keys arrive URL-encoded in MinIO notifications.

    Raises:
        MalformedEventError: If the record has no usable key
    """
    try:
        key = record["s3"]["object"]["key"]
    except (KeyError, TypeError, IndexError) as e:
        raise MalformedEventError("Notification has no s3.object.key") from e

    if not isinstance(key, str) or not key:
        raise MalformedEventError("Notification has an empty object key")
    return unquote_plus(key)


def _sanitize_filename(filename: str) -> str:
    """Flatten an object key into a single safe file name."""
    safe = filename.replace("../", "").replace("..\\", "")
    safe = safe.replace("/", "_").replace("\\", "_")
    safe = re.sub(r"[^a-zA-Z0-9._-]", "_", safe)
    return safe[-200:]


class NotificationDispatcher:
    """Stages notified objects and fans them out to matching processors."""

    def __init__(
        self,
        storage: DatalakeStorage,
        registry: ProcessorRegistry,
        event_bus: MediatorEventBus,
        staging_dir: Optional[str] = None,
    ):
        self.storage = storage
        self.registry = registry
        self.event_bus = event_bus
        self.staging_dir = Path(staging_dir) if staging_dir else DEFAULT_STAGING_DIR

    def staging_path(self, file: str) -> Path:
        """Unique local path for one notification's copy of ``file``."""
        return self.staging_dir / f"{uuid.uuid4().hex}_{_sanitize_filename(file)}"

    async def handle_notification(self, bucket: str, record: Any) -> DispatchOutcome:
        """Process one raw notification record from ``bucket``.

        Args:
            bucket: Bucket the subscription is attached to
            record: Raw S3-style event record

        Returns:
            DispatchOutcome describing what happened
        """
        try:
            file = extract_object_key(record)
        except MalformedEventError as e:
            logger.warning(
                "Received notification without file key",
                extra={"bucket": bucket, "error": str(e)},
            )
            return DispatchOutcome(status="malformed", bucket=bucket)

        token = object_uri_context.set(f"s3://{bucket}/{file}")
        try:
            return await self._dispatch(bucket, file)
        finally:
            object_uri_context.reset(token)

    async def _dispatch(self, bucket: str, file: str) -> DispatchOutcome:
        logger.info(
            f"File received: {file} from bucket {bucket}",
            extra={"bucket": bucket, "object_name": file},
        )

        self.event_bus.emit_notification(
            BucketNotificationEvent(bucket=bucket, file=file, event_type=OBJECT_CREATED_EVENT)
        )

        local_path = self.staging_path(file)
        try:
            local_path.parent.mkdir(parents=True, exist_ok=True)
            await self.storage.fetch_object_to_local_path(bucket, file, str(local_path))
        except Exception as e:
            self._log_staging_failure(bucket, file, e)
            return DispatchOutcome(status="staging_failed", bucket=bucket, file=file)

        outcome = DispatchOutcome(status="processed", bucket=bucket, file=file)
        try:
            buffer = await asyncio.to_thread(local_path.read_bytes)
            mime_type = detect_mime_type(file)
            outcome.mime_type = mime_type

            context = ProcessorContext(
                bucket=bucket,
                file=file,
                buffer=buffer,
                mime_type=mime_type,
                metadata={},
            )
            await self._fan_out(context, outcome)
        except Exception as e:
            logger.error(
                f"Error processing file {file}: {e}",
                extra={"bucket": bucket, "object_name": file, "error": str(e)},
                exc_info=True,
            )
            outcome.status = "processing_failed"
        finally:
            await self._cleanup(local_path)

        return outcome

    async def _fan_out(self, context: ProcessorContext, outcome: DispatchOutcome) -> None:
        for processor in self.registry.list_all():
            name = processor_name(processor)
            try:
                wanted = processor.can_process(context.file, context.mime_type)
                if inspect.isawaitable(wanted):
                    wanted = await wanted
                if not wanted:
                    continue
                result = processor.process(context)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                error = ProcessorError(name, context.file, e)
                logger.error(
                    str(error),
                    extra={
                        "processor": name,
                        "bucket": context.bucket,
                        "object_name": context.file,
                        "error": str(e),
                    },
                    exc_info=True,
                )
                outcome.failed.append(name)
                continue

            outcome.processed.append(name)
            logger.debug(
                f"Processed {context.file} with {name}",
                extra={"processor": name, "object_name": context.file},
            )

    async def _cleanup(self, local_path: Path) -> None:
        try:
            await self.storage.remove_local_path(str(local_path))
            logger.debug(f"Cleaned up temp file {local_path}")
        except Exception as e:
            logger.warning(
                f"Failed to cleanup temp file: {e}",
                extra={"temp_path": str(local_path), "error": str(e)},
            )

    @staticmethod
    def _log_staging_failure(bucket: str, file: str, error: Exception) -> None:
        if isinstance(error, BucketNotFoundError):
            reason = "bucket_not_found"
        elif isinstance(error, ObjectNotFoundError):
            reason = "object_not_found"
        elif isinstance(error, StagingError):
            reason = "fetch_failed"
        else:
            reason = "unexpected"

        logger.error(
            f"Error staging file {file}: {error}",
            extra={
                "bucket": bucket,
                "object_name": file,
                "reason": reason,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )
