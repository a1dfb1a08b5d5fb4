"""Datalake request and result models."""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field


class ObjectStat(BaseModel):
    """Object metadata returned by a stat call."""

    bucket: str
    name: str
    size: int
    content_type: Optional[str] = None
    etag: Optional[str] = None
    last_modified: Optional[datetime] = None
    metadata: Dict[str, str] = Field(default_factory=dict)


class UploadOptions(BaseModel):
    """Options for file upload operations."""

    bucket: str
    create_bucket_if_not_exists: bool = False
    register_with_openhim: bool = False
    custom_metadata: Dict[str, str] = Field(default_factory=dict)


class UploadResult(BaseModel):
    """Result of an upload operation."""

    success: bool
    message: str
    object_name: Optional[str] = None
    bucket: Optional[str] = None


class FileExistsResult(BaseModel):
    """Result of a file existence check."""

    exists: bool
    success: bool
    message: str


class DownloadResult(BaseModel):
    """Result of a download operation."""

    success: bool
    message: str
    buffer: Optional[bytes] = None
    dest_path: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)
    size: Optional[int] = None
    last_modified: Optional[datetime] = None
    etag: Optional[str] = None
