"""
Tests for the datalake library factory.
"""

import pytest

from datalake_mediator.core.config import DatalakeConfig, DatalakeLibConfig, OpenHIMConfig
from datalake_mediator.datalake.client import MinioStorageClient
from datalake_mediator.datalake.models import UploadOptions
from datalake_mediator.events.bus import MediatorEventBus
from datalake_mediator.lib import create_datalake_lib


def _config(**overrides):
    return DatalakeLibConfig(
        datalake=DatalakeConfig(end_point="localhost", access_key="a", secret_key="s"),
        **overrides,
    )


def test_default_backend_is_minio():
    lib = create_datalake_lib(_config())

    assert isinstance(lib.client, MinioStorageClient)
    assert lib.openhim is None


def test_services_share_storage_and_bus(storage):
    """Test that every service is wired to the same collaborators."""
    lib = create_datalake_lib(_config(listener_prefix="in/", staging_dir="/tmp/staging"), storage=storage)

    assert lib.client is storage
    assert lib.upload.storage is storage
    assert lib.download.storage is storage
    assert lib.listeners.storage is storage
    assert lib.upload.event_bus is lib.events
    assert lib.listeners.dispatcher.event_bus is lib.events
    assert lib.listeners.prefix == "in/"
    assert str(lib.listeners.dispatcher.staging_dir) == "/tmp/staging"


def test_openhim_service_created_when_configured(storage):
    config = _config(
        openhim=OpenHIMConfig(
            api_url="https://openhim:8080",
            username="u",
            password="p",
            mediator_urn="urn:mediator:x",
        )
    )

    lib = create_datalake_lib(config, storage=storage)

    assert lib.openhim is not None
    assert lib.upload.openhim_service is lib.openhim
    assert lib.upload.source == "urn:mediator:x"


@pytest.mark.asyncio
async def test_shared_bus_across_instances(storage):
    """Test that two instances given one bus see each other's uploads."""
    bus = MediatorEventBus()
    producer = create_datalake_lib(_config(), storage=storage, event_bus=bus)
    consumer = create_datalake_lib(_config(), storage=storage, event_bus=bus)
    seen = []
    consumer.events.on_upload(lambda event: seen.append(event.file))

    await producer.upload.upload_buffer(
        b"{}", "a.json", "application/json", UploadOptions(bucket="b", create_bucket_if_not_exists=True)
    )

    assert seen == ["a.json"]


@pytest.mark.asyncio
async def test_download_service_uses_configured_presigned_expiry(storage):
    lib = create_datalake_lib(_config(presigned_url_expiry_seconds=120), storage=storage)

    assert lib.download.presigned_expiry_seconds == 120
    assert await lib.download.get_presigned_url("b", "k") == "http://fake-datalake/b/k?expires=120"
