"""Cross-mediator event records."""

from datetime import datetime, timezone
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

OBJECT_CREATED_EVENT = "s3:ObjectCreated:*"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UploadEvent(BaseModel):
    """Event emitted when a file is uploaded through this library."""

    model_config = ConfigDict(frozen=True)

    bucket: str = Field(..., description="Bucket the file was written to")
    file: str = Field(..., description="Object name")
    mime_type: str = Field(..., description="Content type given at upload")
    metadata: Dict[str, str] = Field(default_factory=dict, description="Custom upload metadata")
    timestamp: datetime = Field(default_factory=_utcnow)
    source: Optional[str] = Field(None, description="Identifier of the uploading mediator")


class BucketNotificationEvent(BaseModel):
    """Event emitted when a bucket notification is received."""

    model_config = ConfigDict(frozen=True)

    bucket: str
    file: str
    event_type: str = OBJECT_CREATED_EVENT
    timestamp: datetime = Field(default_factory=_utcnow)
