"""
Datalake mediator library

Lets mediators share a MinIO/S3 datalake, react to files landing in watched
buckets through pluggable processors, and keep OpenHIM informed of the
buckets in use.
"""

from datalake_mediator.core.config import DatalakeConfig, DatalakeLibConfig, OpenHIMConfig
from datalake_mediator.datalake import (
    FileProcessor,
    FunctionProcessor,
    ProcessorContext,
    detect_mime_type,
)
from datalake_mediator.datalake.models import UploadOptions, UploadResult
from datalake_mediator.events.bus import MediatorEventBus
from datalake_mediator.events.models import BucketNotificationEvent, UploadEvent
from datalake_mediator.lib import DatalakeLib, create_datalake_lib

__all__ = [
    "BucketNotificationEvent",
    "DatalakeConfig",
    "DatalakeLib",
    "DatalakeLibConfig",
    "FileProcessor",
    "FunctionProcessor",
    "MediatorEventBus",
    "OpenHIMConfig",
    "ProcessorContext",
    "UploadEvent",
    "UploadOptions",
    "UploadResult",
    "create_datalake_lib",
    "detect_mime_type",
]
