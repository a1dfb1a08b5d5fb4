"""Configuration management for the datalake mediator."""

from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatalakeConfig(BaseModel):
    """Connection settings for the MinIO/S3 datalake."""

    end_point: str
    port: int = 9000
    use_ssl: bool = False
    access_key: str
    secret_key: str
    region: Optional[str] = None


class OpenHIMConfig(BaseModel):
    """Connection settings for the OpenHIM core API."""

    api_url: str
    username: str
    password: str
    trust_self_signed: bool = True
    mediator_urn: str
    timeout: float = 10.0
    heartbeat_interval: float = 10.0


class DatalakeLibConfig(BaseModel):
    """Combined configuration accepted by ``create_datalake_lib``."""

    datalake: DatalakeConfig
    openhim: Optional[OpenHIMConfig] = None
    listener_prefix: str = ""
    listener_suffix: str = ""
    staging_dir: Optional[str] = None
    notification_retry_delay: float = Field(default=5.0, ge=0)
    presigned_url_expiry_seconds: int = Field(default=7 * 24 * 60 * 60, gt=0)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    ENV: str = "local"
    SERVICE_NAME: str = "datalake-mediator"
    SERVICE_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Datalake (MinIO/S3) Configuration
    DATALAKE_ENDPOINT: str = "localhost"
    DATALAKE_PORT: int = 9000
    DATALAKE_USE_SSL: bool = False
    DATALAKE_ACCESS_KEY: str = ""
    DATALAKE_SECRET_KEY: str = ""
    DATALAKE_REGION: str = ""

    # OpenHIM Configuration (empty API URL disables the integration)
    OPENHIM_API_URL: str = ""
    OPENHIM_USERNAME: str = ""
    OPENHIM_PASSWORD: str = ""
    OPENHIM_TRUST_SELF_SIGNED: bool = True
    OPENHIM_MEDIATOR_URN: str = ""
    OPENHIM_TIMEOUT: float = 10.0  # seconds per API call
    OPENHIM_HEARTBEAT_INTERVAL: float = 10.0  # seconds

    # Listener Configuration
    LISTEN_BUCKETS: str = ""  # Comma-separated, empty = listen on nothing
    LISTENER_PREFIX: str = ""
    LISTENER_SUFFIX: str = ""
    STAGING_DIR: str = ""  # Empty = system temp dir
    NOTIFICATION_RETRY_DELAY: float = 5.0  # seconds before a poller reconnects

    # Download Configuration
    PRESIGNED_URL_EXPIRY_SECONDS: int = 7 * 24 * 60 * 60

    @property
    def listen_buckets(self) -> list[str]:
        """Parse LISTEN_BUCKETS into a list."""
        if not self.LISTEN_BUCKETS:
            return []
        return [b.strip() for b in self.LISTEN_BUCKETS.split(",") if b.strip()]

    def datalake_config(self) -> DatalakeConfig:
        """Build the datalake connection config."""
        return DatalakeConfig(
            end_point=self.DATALAKE_ENDPOINT,
            port=self.DATALAKE_PORT,
            use_ssl=self.DATALAKE_USE_SSL,
            access_key=self.DATALAKE_ACCESS_KEY,
            secret_key=self.DATALAKE_SECRET_KEY,
            region=self.DATALAKE_REGION or None,
        )

    def openhim_config(self) -> Optional[OpenHIMConfig]:
        """Build the OpenHIM config, or None when OpenHIM is not configured."""
        if not self.OPENHIM_API_URL:
            return None
        return OpenHIMConfig(
            api_url=self.OPENHIM_API_URL,
            username=self.OPENHIM_USERNAME,
            password=self.OPENHIM_PASSWORD,
            trust_self_signed=self.OPENHIM_TRUST_SELF_SIGNED,
            mediator_urn=self.OPENHIM_MEDIATOR_URN,
            timeout=self.OPENHIM_TIMEOUT,
            heartbeat_interval=self.OPENHIM_HEARTBEAT_INTERVAL,
        )

    def lib_config(self) -> DatalakeLibConfig:
        """Build the full library config from the environment."""
        return DatalakeLibConfig(
            datalake=self.datalake_config(),
            openhim=self.openhim_config(),
            listener_prefix=self.LISTENER_PREFIX,
            listener_suffix=self.LISTENER_SUFFIX,
            staging_dir=self.STAGING_DIR or None,
            notification_retry_delay=self.NOTIFICATION_RETRY_DELAY,
            presigned_url_expiry_seconds=self.PRESIGNED_URL_EXPIRY_SECONDS,
        )


# Singleton settings instance
settings = Settings()
