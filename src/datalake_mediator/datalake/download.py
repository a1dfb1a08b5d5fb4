"""Service for downloading files from the datalake."""

import logging
from datetime import timedelta
from typing import Optional

from datalake_mediator.datalake.bucket import BucketManager
from datalake_mediator.datalake.models import DownloadResult, ObjectStat
from datalake_mediator.datalake.storage import DatalakeStorage

logger = logging.getLogger(__name__)

DEFAULT_PRESIGNED_EXPIRY_SECONDS = 7 * 24 * 60 * 60


class DownloadService:
    """Downloads files from the datalake."""

    def __init__(
        self,
        storage: DatalakeStorage,
        bucket_manager: BucketManager,
        presigned_expiry_seconds: int = DEFAULT_PRESIGNED_EXPIRY_SECONDS,
    ):
        self.storage = storage
        self.bucket_manager = bucket_manager
        self.presigned_expiry_seconds = presigned_expiry_seconds

    async def download_to_buffer(self, bucket: str, file_name: str) -> DownloadResult:
        """Download a file into memory.

        Returns:
            DownloadResult with ``buffer`` set on success
        """
        try:
            exists_check = await self.bucket_manager.check_file_exists(bucket, file_name)
            if not exists_check.exists:
                return DownloadResult(success=False, message=exists_check.message)

            logger.info(
                f"Downloading file {file_name} from bucket {bucket}",
                extra={"bucket": bucket, "object_name": file_name},
            )
            buffer = await self.storage.get_object_bytes(bucket, file_name)
            stat = await self.storage.stat_object(bucket, file_name)

            success_message = f"File {file_name} downloaded from bucket {bucket}"
            logger.info(success_message, extra={"bucket": bucket, "object_name": file_name})

            return self._result(success_message, stat, buffer=buffer)
        except Exception as e:
            error_message = f"Error downloading file: {e}"
            logger.error(error_message, extra={"bucket": bucket, "object_name": file_name})
            return DownloadResult(success=False, message=error_message)

    async def download_to_path(self, bucket: str, file_name: str, dest_path: str) -> DownloadResult:
        """Download a file to a local path.

        Returns:
            DownloadResult with ``dest_path`` set on success
        """
        try:
            exists_check = await self.bucket_manager.check_file_exists(bucket, file_name)
            if not exists_check.exists:
                return DownloadResult(success=False, message=exists_check.message)

            logger.info(
                f"Downloading file {file_name} from bucket {bucket} to {dest_path}",
                extra={"bucket": bucket, "object_name": file_name, "destination": dest_path},
            )
            await self.storage.fetch_object_to_local_path(bucket, file_name, dest_path)
            stat = await self.storage.stat_object(bucket, file_name)

            success_message = f"File {file_name} downloaded from bucket {bucket} to {dest_path}"
            logger.info(success_message, extra={"bucket": bucket, "object_name": file_name})

            return self._result(success_message, stat, dest_path=dest_path)
        except Exception as e:
            error_message = f"Error downloading file: {e}"
            logger.error(error_message, extra={"bucket": bucket, "object_name": file_name})
            return DownloadResult(success=False, message=error_message)

    async def get_presigned_url(
        self,
        bucket: str,
        file_name: str,
        expiry_seconds: Optional[int] = None,
    ) -> Optional[str]:
        """Get a presigned download URL, or None on error.

        Expiry defaults to the service's configured ``presigned_expiry_seconds``.
        """
        if expiry_seconds is None:
            expiry_seconds = self.presigned_expiry_seconds
        try:
            url = await self.storage.presigned_get_url(
                bucket, file_name, timedelta(seconds=expiry_seconds)
            )
            logger.debug(f"Generated presigned URL for {file_name}")
            return url
        except Exception as e:
            logger.error(
                f"Error generating presigned URL: {e}",
                extra={"bucket": bucket, "object_name": file_name},
            )
            return None

    @staticmethod
    def _result(message: str, stat: Optional[ObjectStat], **kwargs) -> DownloadResult:
        if stat is None:
            return DownloadResult(success=True, message=message, **kwargs)
        return DownloadResult(
            success=True,
            message=message,
            metadata=dict(stat.metadata),
            size=stat.size,
            last_modified=stat.last_modified,
            etag=stat.etag,
            **kwargs,
        )
