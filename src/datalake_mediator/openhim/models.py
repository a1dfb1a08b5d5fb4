"""OpenHIM mediator configuration models."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

BUCKET_REGISTRY_KEY = "minio_buckets_registry"


class BucketRegistryEntry(BaseModel):
    """One bucket entry in the mediator's ``minio_buckets_registry`` config."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    bucket: str
    region: Optional[str] = None
    url: Optional[str] = None
    file_name: Optional[str] = Field(None, alias="fileName")
    auth_token: Optional[str] = Field(None, alias="authToken")


class MediatorConfig(BaseModel):
    """Mediator registration document as stored by OpenHIM."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    urn: str
    version: str
    name: str
    description: str = ""
    default_channel_config: List[Dict[str, Any]] = Field(
        default_factory=list, alias="defaultChannelConfig"
    )
    endpoints: List[Dict[str, Any]] = Field(default_factory=list)
    config_defs: List[Dict[str, Any]] = Field(default_factory=list, alias="configDefs")
    config: Optional[Dict[str, Any]] = None

    def bucket_registry(self) -> List[BucketRegistryEntry]:
        """Parse the bucket registry out of the config section."""
        return parse_bucket_registry(self.config)


def parse_bucket_registry(config: Optional[Dict[str, Any]]) -> List[BucketRegistryEntry]:
    """Parse ``minio_buckets_registry`` from a raw config mapping."""
    if not config:
        return []
    entries = config.get(BUCKET_REGISTRY_KEY) or []
    return [BucketRegistryEntry.model_validate(entry) for entry in entries]
