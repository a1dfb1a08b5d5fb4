"""
Datalake layer

Object storage access, bucket notification listeners and the file processor
pipeline that runs against newly created objects.
"""

from datalake_mediator.datalake.bucket import BucketManager
from datalake_mediator.datalake.client import MinioStorageClient, create_datalake_client
from datalake_mediator.datalake.dispatcher import DispatchOutcome, NotificationDispatcher
from datalake_mediator.datalake.download import DownloadService
from datalake_mediator.datalake.listeners import ListenerManager
from datalake_mediator.datalake.mime import detect_mime_type
from datalake_mediator.datalake.processors import (
    FileProcessor,
    FunctionProcessor,
    ProcessorContext,
    ProcessorRegistry,
)
from datalake_mediator.datalake.storage import DatalakeStorage, NotificationStream
from datalake_mediator.datalake.upload import UploadService

__all__ = [
    "BucketManager",
    "DatalakeStorage",
    "DispatchOutcome",
    "DownloadService",
    "FileProcessor",
    "FunctionProcessor",
    "ListenerManager",
    "MinioStorageClient",
    "NotificationDispatcher",
    "NotificationStream",
    "ProcessorContext",
    "ProcessorRegistry",
    "UploadService",
    "create_datalake_client",
    "detect_mime_type",
]
