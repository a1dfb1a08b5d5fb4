"""Service for uploading files to the datalake."""

import io
import logging
import uuid
from typing import TYPE_CHECKING, Dict, Optional

from datalake_mediator.datalake.bucket import BucketManager
from datalake_mediator.datalake.exceptions import UploadError
from datalake_mediator.datalake.models import UploadOptions, UploadResult
from datalake_mediator.datalake.storage import DatalakeStorage
from datalake_mediator.events.bus import MediatorEventBus
from datalake_mediator.events.models import UploadEvent

if TYPE_CHECKING:
    from datalake_mediator.openhim.mediator import OpenHIMService

logger = logging.getLogger(__name__)


class UploadService:
    """Uploads files and announces them on the event bus."""

    def __init__(
        self,
        storage: DatalakeStorage,
        bucket_manager: BucketManager,
        event_bus: MediatorEventBus,
        openhim_service: Optional["OpenHIMService"] = None,
        source: Optional[str] = None,
    ):
        self.storage = storage
        self.bucket_manager = bucket_manager
        self.event_bus = event_bus
        self.openhim_service = openhim_service
        self.source = source

    async def upload_buffer(
        self, data: bytes, file_name: str, mime_type: str, options: UploadOptions
    ) -> UploadResult:
        """Upload in-memory bytes.

        Existing objects are never overwritten.

        Args:
            data: File content
            file_name: Object name to create
            mime_type: Content type of the file
            options: Upload options

        Returns:
            UploadResult; failures are reported, not raised
        """
        try:
            await self.bucket_manager.ensure_exists(
                options.bucket, options.create_bucket_if_not_exists
            )

            exists_check = await self.bucket_manager.check_file_exists(
                options.bucket, file_name, mime_type
            )
            if exists_check.exists:
                return UploadResult(
                    success=False,
                    message=f"File {file_name} already exists in bucket {options.bucket}",
                    bucket=options.bucket,
                )

            await self.storage.put_object(
                options.bucket,
                file_name,
                io.BytesIO(data),
                len(data),
                mime_type,
                self._build_metadata(options),
            )

            success_message = f"File uploaded as {file_name} in bucket {options.bucket}"
            logger.info(
                success_message,
                extra={"bucket": options.bucket, "object_name": file_name, "size_bytes": len(data)},
            )

            await self._after_upload(file_name, mime_type, options)

            return UploadResult(
                success=True,
                message=success_message,
                object_name=file_name,
                bucket=options.bucket,
            )
        except Exception as e:
            error_message = f"Error uploading file: {e}"
            logger.error(error_message, extra={"bucket": options.bucket, "object_name": file_name})
            return UploadResult(success=False, message=error_message)

    async def upload_from_path(
        self, file_path: str, file_name: str, mime_type: str, options: UploadOptions
    ) -> UploadResult:
        """Upload a local file.

        Raises:
            UploadError: If the upload fails
        """
        try:
            await self.bucket_manager.ensure_exists(
                options.bucket, options.create_bucket_if_not_exists
            )

            logger.info(
                f"Uploading file {file_path} to bucket {options.bucket}",
                extra={"bucket": options.bucket, "source": file_path},
            )
            await self.storage.fput_object(
                options.bucket,
                file_name,
                file_path,
                mime_type,
                self._build_metadata(options),
            )

            success_message = f"File {file_path} uploaded as {file_name} in bucket {options.bucket}"
            logger.info(success_message, extra={"bucket": options.bucket, "object_name": file_name})

            await self._after_upload(file_name, mime_type, options)

            return UploadResult(
                success=True,
                message=success_message,
                object_name=file_name,
                bucket=options.bucket,
            )
        except Exception as e:
            logger.error(
                f"Error uploading file: {e}",
                extra={"bucket": options.bucket, "source": file_path},
            )
            raise UploadError(f"Failed to upload file {file_path}") from e

    @staticmethod
    def _build_metadata(options: UploadOptions) -> Dict[str, str]:
        return {"X-Upload-Id": str(uuid.uuid4()), **options.custom_metadata}

    async def _after_upload(self, file_name: str, mime_type: str, options: UploadOptions) -> None:
        if options.register_with_openhim and self.openhim_service:
            await self._register_bucket(options.bucket)

        self.event_bus.emit_upload(
            UploadEvent(
                bucket=options.bucket,
                file=file_name,
                mime_type=mime_type,
                metadata=dict(options.custom_metadata),
                source=self.source,
            )
        )

    async def _register_bucket(self, bucket: str) -> None:
        """Register the bucket with OpenHIM without failing the upload."""
        try:
            registered = await self.openhim_service.register_bucket(bucket)
            logger.debug(
                f"OpenHIM bucket registration for {bucket}: {registered}",
                extra={"bucket": bucket, "registered": registered},
            )
        except Exception as e:
            logger.warning(
                f"Failed to register bucket {bucket} with OpenHIM (non-critical)",
                extra={"bucket": bucket, "error": str(e)},
            )
