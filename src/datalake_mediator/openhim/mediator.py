"""
OpenHIM integration for the datalake mediator.

Registers the mediator, keeps a heartbeat running, and maintains the
``minio_buckets_registry`` section of the mediator config so other mediators
can discover which buckets are in use.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from datalake_mediator.core.config import OpenHIMConfig
from datalake_mediator.openhim.models import (
    BUCKET_REGISTRY_KEY,
    BucketRegistryEntry,
    MediatorConfig,
    parse_bucket_registry,
)

logger = logging.getLogger(__name__)


class OpenHIMService:
    """Client for the OpenHIM core API."""

    def __init__(
        self,
        config: OpenHIMConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the service.

        Args:
            config: OpenHIM connection settings
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.config = config
        self._transport = transport
        self._openhim_config: List[BucketRegistryEntry] = []
        self._heartbeat_task: Optional[asyncio.Task] = None
        self._started_at = time.monotonic()

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.config.api_url,
            auth=(self.config.username, self.config.password),
            verify=not self.config.trust_self_signed,
            timeout=self.config.timeout,
            transport=self._transport,
        )

    @property
    def _mediator_path(self) -> str:
        return f"/mediators/{self.config.mediator_urn}"

    async def setup_mediator(self, mediator_config: MediatorConfig) -> None:
        """Register the mediator, load its config and start the heartbeat.

        Raises:
            httpx.HTTPError: If registration or the initial config fetch fails
        """
        try:
            await self._register_mediator(mediator_config)
        except httpx.HTTPError as e:
            logger.error(f"Failed to register mediator: {e}", extra={"urn": mediator_config.urn})
            raise
        logger.info("Successfully registered mediator!", extra={"urn": mediator_config.urn})

        try:
            await self._send_heartbeat(force_config=True)
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch initial config: {e}", extra={"urn": mediator_config.urn})
            raise

        self.start_heartbeat()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _register_mediator(self, mediator_config: MediatorConfig) -> None:
        async with self._client() as client:
            response = await client.post(
                "/mediators",
                json=mediator_config.model_dump(by_alias=True, exclude_none=True),
            )
            response.raise_for_status()

    def start_heartbeat(self) -> None:
        """Start the background heartbeat loop (idempotent)."""
        if self._heartbeat_task and not self._heartbeat_task.done():
            return
        self._heartbeat_task = asyncio.create_task(self._heartbeat_loop(), name="openhim-heartbeat")

    async def stop_heartbeat(self) -> None:
        """Cancel the heartbeat loop and wait for it to exit."""
        task, self._heartbeat_task = self._heartbeat_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _heartbeat_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.heartbeat_interval)
            try:
                await self._send_heartbeat()
            except (httpx.HTTPError, ValueError) as e:
                # ValueError covers non-JSON replies and invalid registry entries
                logger.error(
                    f"Heartbeat failed: {e}",
                    extra={"urn": self.config.mediator_urn, "error_type": type(e).__name__},
                )

    async def _send_heartbeat(self, force_config: bool = False) -> None:
        payload: Dict[str, Any] = {"uptime": time.monotonic() - self._started_at}
        if force_config:
            payload["config"] = True

        async with self._client() as client:
            response = await client.post(f"{self._mediator_path}/heartbeat", json=payload)
            response.raise_for_status()

        config = response.json() if response.content else None
        if isinstance(config, dict) and config:
            logger.debug("Received new configs from OpenHIM")
            self._openhim_config = parse_bucket_registry(config)

    async def get_mediator_config(self) -> Optional[MediatorConfig]:
        """Get the mediator configuration from OpenHIM.

        Returns:
            Mediator configuration, or None if it cannot be fetched
        """
        try:
            async with self._client() as client:
                response = await client.get(self._mediator_path)
                response.raise_for_status()
            return MediatorConfig.model_validate(response.json())
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            if status_code == 401:
                logger.error("Failed to authenticate with OpenHIM, check your credentials")
            elif status_code == 404:
                logger.debug("Mediator config not found in OpenHIM")
            else:
                logger.error(
                    f"Failed to fetch mediator config: {e}",
                    extra={"status_code": status_code},
                )
            return None
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to fetch mediator config: {e}")
            return None

    async def register_bucket(self, bucket: str) -> bool:
        """Register a bucket in the mediator config.

        Returns:
            True if the registry was updated; False if the bucket was already
            registered or the mediator config could not be fetched
        """
        mediator_config = await self.get_mediator_config()
        if mediator_config is None:
            logger.error("Mediator config not found in OpenHIM, unable to register bucket")
            return False

        new_bucket = BucketRegistryEntry(bucket=bucket)

        if mediator_config.config is None:
            logger.info("Mediator config does not have a config section, creating new config")
            await self._put_mediator_config([new_bucket])
            return True

        registry = mediator_config.bucket_registry()
        if any(entry.bucket == bucket for entry in registry):
            logger.debug(f"Bucket {bucket} already exists in the config")
            return False

        logger.info(f"Adding bucket {bucket} to OpenHIM config", extra={"bucket": bucket})
        registry.append(new_bucket)
        await self._put_mediator_config(registry)
        return True

    async def remove_bucket(self, buckets: List[str]) -> bool:
        """Remove buckets from the mediator config.

        Returns:
            True if the registry was rewritten
        """
        mediator_config = await self.get_mediator_config()
        if mediator_config is None or mediator_config.config is None:
            logger.error("Mediator config not found or has no config section")
            return False

        remaining = [e for e in mediator_config.bucket_registry() if e.bucket not in buckets]
        await self._put_mediator_config(remaining)
        return True

    def get_openhim_config(self) -> List[BucketRegistryEntry]:
        """Bucket registry as last received through the heartbeat."""
        return list(self._openhim_config)

    async def _put_mediator_config(self, buckets: List[BucketRegistryEntry]) -> None:
        payload = {
            BUCKET_REGISTRY_KEY: [b.model_dump(by_alias=True, exclude_none=True) for b in buckets]
        }
        try:
            async with self._client() as client:
                response = await client.put(f"{self._mediator_path}/config", json=payload)
                response.raise_for_status()
            logger.info("Successfully updated mediator config in OpenHIM")
        except httpx.HTTPError as e:
            logger.error(f"Failed to update mediator config: {e}")
            raise
