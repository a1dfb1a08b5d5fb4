"""Factory wiring the datalake services together."""

from dataclasses import dataclass
from typing import Optional

from datalake_mediator.core.config import DatalakeLibConfig
from datalake_mediator.datalake.bucket import BucketManager
from datalake_mediator.datalake.client import create_datalake_client
from datalake_mediator.datalake.download import DownloadService
from datalake_mediator.datalake.listeners import ListenerManager
from datalake_mediator.datalake.storage import DatalakeStorage
from datalake_mediator.datalake.upload import UploadService
from datalake_mediator.events.bus import MediatorEventBus
from datalake_mediator.openhim.mediator import OpenHIMService


@dataclass
class DatalakeLib:
    """Configured services sharing one storage client and one event bus."""

    client: DatalakeStorage
    upload: UploadService
    download: DownloadService
    buckets: BucketManager
    listeners: ListenerManager
    events: MediatorEventBus
    openhim: Optional[OpenHIMService] = None


def create_datalake_lib(
    config: DatalakeLibConfig,
    storage: Optional[DatalakeStorage] = None,
    event_bus: Optional[MediatorEventBus] = None,
) -> DatalakeLib:
    """Create a configured datalake library instance.

    Args:
        config: Datalake, listener and optional OpenHIM configuration
        storage: Storage backend to use instead of building a MinIO client
        event_bus: Bus to share with other library instances in this process

    Returns:
        DatalakeLib bundling every service

    Example:
        lib = create_datalake_lib(settings.lib_config())
        lib.listeners.register_processor(
            FunctionProcessor(lambda f, m: f.endswith(".json"), handle_json)
        )
        lib.events.on_upload(lambda event: print(event.file))
        await lib.listeners.start_listening(["my-bucket"])
    """
    client = storage or create_datalake_client(
        config.datalake, notification_retry_delay=config.notification_retry_delay
    )
    events = event_bus or MediatorEventBus()
    bucket_manager = BucketManager(client)

    openhim_service = OpenHIMService(config.openhim) if config.openhim else None

    upload_service = UploadService(
        client,
        bucket_manager,
        events,
        openhim_service=openhim_service,
        source=config.openhim.mediator_urn if config.openhim else None,
    )
    download_service = DownloadService(
        client, bucket_manager, presigned_expiry_seconds=config.presigned_url_expiry_seconds
    )
    listener_manager = ListenerManager(
        client,
        events,
        prefix=config.listener_prefix,
        suffix=config.listener_suffix,
        staging_dir=config.staging_dir,
    )

    return DatalakeLib(
        client=client,
        upload=upload_service,
        download=download_service,
        buckets=bucket_manager,
        listeners=listener_manager,
        events=events,
        openhim=openhim_service,
    )
