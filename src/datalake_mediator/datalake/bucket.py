"""Bucket operations for the datalake."""

import logging
import re
from typing import Optional, Set

from datalake_mediator.datalake.exceptions import BucketDoesNotExistError
from datalake_mediator.datalake.models import FileExistsResult
from datalake_mediator.datalake.storage import DatalakeStorage

logger = logging.getLogger(__name__)

_VALID_CHARS = re.compile(r"^[a-z0-9.-]+$")
_ALNUM_START = re.compile(r"^[a-z0-9]")
_ALNUM_END = re.compile(r"[a-z0-9]$")


class BucketManager:
    """Manages bucket operations for the datalake."""

    def __init__(self, storage: DatalakeStorage):
        self.storage = storage
        self._registered_buckets: Set[str] = set()

    async def ensure_exists(self, bucket: str, create_if_not_exists: bool = False) -> None:
        """Ensure a bucket exists, optionally creating it.

        Args:
            bucket: Bucket name
            create_if_not_exists: Whether to create the bucket if it is missing

        Raises:
            BucketDoesNotExistError: If the bucket is missing and creation is disabled
        """
        try:
            exists = await self.storage.bucket_exists(bucket)

            if not exists and create_if_not_exists:
                await self.storage.make_bucket(bucket)
                logger.info(f"Bucket {bucket} created", extra={"bucket": bucket})

            if not exists and not create_if_not_exists:
                raise BucketDoesNotExistError(bucket)

            self._registered_buckets.add(bucket)
        except Exception as e:
            logger.error(
                f"Error ensuring bucket {bucket} exists: {e}",
                extra={"bucket": bucket, "error": str(e)},
            )
            raise

    async def check_file_exists(
        self, bucket: str, file_name: str, expected_mime_type: Optional[str] = None
    ) -> FileExistsResult:
        """Check whether a file exists in a bucket.

        Args:
            bucket: Bucket name
            file_name: Object name
            expected_mime_type: If given, the stored content type must match

        Returns:
            FileExistsResult; ``success`` is False only when the check itself failed
        """
        try:
            if not await self.storage.bucket_exists(bucket):
                return FileExistsResult(
                    exists=False,
                    success=False,
                    message=f"Bucket {bucket} does not exist",
                )

            stat = await self.storage.stat_object(bucket, file_name)
            if stat is None:
                return FileExistsResult(
                    exists=False,
                    success=True,
                    message=f"File {file_name} not found in bucket {bucket}",
                )

            if expected_mime_type and stat.content_type != expected_mime_type:
                return FileExistsResult(
                    exists=False,
                    success=True,
                    message=(
                        f"File {file_name} exists in bucket {bucket} but has different MIME type "
                        f"(expected: {expected_mime_type}, actual: {stat.content_type})"
                    ),
                )

            return FileExistsResult(
                exists=True,
                success=True,
                message=f"File {file_name} exists in bucket {bucket}",
            )
        except Exception as e:
            logger.error(
                f"Error checking file existence: {e}",
                extra={"bucket": bucket, "object_name": file_name, "error": str(e)},
            )
            return FileExistsResult(
                exists=False,
                success=False,
                message=f"Error checking file existence: {e}",
            )

    def get_registered_buckets(self) -> Set[str]:
        """Buckets confirmed to exist by ``ensure_exists``."""
        return set(self._registered_buckets)

    @staticmethod
    def validate_name(name: str) -> bool:
        """Validate a bucket name against S3/MinIO naming rules."""
        if not name or len(name) < 3 or len(name) > 63:
            return False
        if not _ALNUM_START.match(name) or not _ALNUM_END.search(name):
            return False
        if not _VALID_CHARS.match(name):
            return False
        if name.startswith("xn--") or name.endswith("-s3alias"):
            return False
        if ".." in name:
            return False
        return True

    @staticmethod
    def sanitize_name(name: str) -> str:
        """Turn an arbitrary string into a bucket name candidate.

        Lowercases, drops anything outside ``[a-z0-9-]``, trims leading and
        trailing hyphens, and truncates to 63 characters.
        """
        sanitized = re.sub(r"[^a-z0-9-]", "", name.lower())
        sanitized = sanitized.strip("-")
        return sanitized[:63]
