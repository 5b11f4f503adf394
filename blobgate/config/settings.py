"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Storage settings are plain text-style fields, mirroring how hosts pass
provider options. `to_account_config()` turns them into the immutable
StorageAccountConfig the gateway works with, and is the one place where
an auth mode string is mapped to a variant.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.models import (
    DEFAULT_CHUNK_SIZE_BYTES,
    DEFAULT_MAX_CONCURRENT_CHUNKS,
    AuthMode,
    ConfigurationError,
    ManagedIdentityAuth,
    PublicAccessLevel,
    SharedKeyAuth,
    StorageAccountConfig,
    TransferTuning,
)

SHARED_KEY_AUTH_TYPES = ("default", "shared_key")
MANAGED_IDENTITY_AUTH_TYPES = ("msi", "managed_identity")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like api_keys), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "Blobgate API"
    api_version: str = "v1"
    api_keys: str = Field(
        default="dev-key-1,dev-key-2",
        description="Comma-separated API keys. Using a list enables key rotation without downtime."
    )

    # Azure Blob Storage Configuration
    azure_auth_type: str = Field(
        default="default",
        description='Authentication type, either "msi" or "default" (account key).'
    )
    azure_client_id: str = Field(
        default="",
        description="Managed identity client id. Used only when auth type is msi."
    )
    azure_account: str = Field(
        default="",
        description="Storage account name (required)"
    )
    azure_account_key: str = Field(
        default="",
        description="Storage account key. Required when auth type is default. Under msi it only signs SAS tokens for public assets (optional)."
    )
    azure_sas_token: str = Field(
        default="",
        description="Pre-issued account SAS token used for private assets under default auth (optional)"
    )
    azure_service_base_url: Optional[str] = Field(
        default=None,
        description="Blob service URL. Defaults to https://{account}.blob.core.windows.net"
    )
    azure_container_name: str = Field(
        default="",
        description="Container name (required)"
    )
    azure_default_path: str = Field(
        default="assets",
        description="Path prefix for blob names, without a trailing slash"
    )
    azure_create_container_if_not_exist: bool = Field(
        default=False,
        description="Create the container on upload if it does not exist"
    )
    azure_public_access_type: str = Field(
        default="",
        description='Public access for a created container, "blob" or "container". Anything else creates a private container.'
    )
    azure_cdn_base_url: Optional[str] = Field(
        default=None,
        description="CDN base URL replacing the storage origin in returned URLs (optional)"
    )
    azure_default_cache_control: Optional[str] = Field(
        default=None,
        description="Cache-Control header set on every uploaded blob (optional)"
    )
    azure_remove_cn: bool = Field(
        default=False,
        description="Remove the container name from returned URLs, for containers mapped to the web root"
    )
    azure_upload_buffer_size: int = Field(
        default=DEFAULT_CHUNK_SIZE_BYTES,
        description="Upload chunk size in bytes"
    )
    azure_upload_max_buffers: int = Field(
        default=DEFAULT_MAX_CONCURRENT_CHUNKS,
        description="Maximum number of chunks uploaded in parallel"
    )
    azure_mock_mode: bool = Field(
        default=False,
        description="Use in-memory mock instead of Azure. Enables local dev without a storage account."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        str_strip_whitespace=True,
    )

    @property
    def api_keys_list(self) -> list[str]:
        """Parse comma-separated API keys into a list."""
        return [key.strip() for key in self.api_keys.split(",") if key.strip()]

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set.

        Returns list of missing required fields. Requirements depend on
        the auth type, so this is separate from Pydantic validation.
        """
        missing = []

        if not self.azure_account:
            missing.append("AZURE_ACCOUNT")
        if not self.azure_container_name:
            missing.append("AZURE_CONTAINER_NAME")

        auth_type = self.azure_auth_type.lower()
        if auth_type in SHARED_KEY_AUTH_TYPES and not self.azure_account_key:
            missing.append("AZURE_ACCOUNT_KEY")

        return missing

    def build_auth(self) -> AuthMode:
        """Map the auth type string to its variant, rejecting unknown modes."""
        auth_type = self.azure_auth_type.lower()

        if auth_type in SHARED_KEY_AUTH_TYPES:
            return SharedKeyAuth(
                account_key=self.azure_account_key,
                sas_token=self.azure_sas_token or None,
            )

        if auth_type in MANAGED_IDENTITY_AUTH_TYPES:
            # Under msi the account key only signs public SAS tokens
            return ManagedIdentityAuth(
                client_id=self.azure_client_id or None,
                signing_key=self.azure_account_key or None,
            )

        raise ConfigurationError(
            f'Unknown auth type "{self.azure_auth_type}", expected "default" or "msi"'
        )

    def to_account_config(self) -> StorageAccountConfig:
        """
        Build the immutable storage configuration.

        Raises ConfigurationError when a required field is missing or the
        auth type is unknown. Call this at startup, not per request.
        """
        missing = self.validate_required_fields()
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}"
            )

        return StorageAccountConfig(
            account=self.azure_account,
            auth=self.build_auth(),
            container_name=self.azure_container_name,
            default_path=self.azure_default_path,
            service_base_url=self.azure_service_base_url or None,
            cdn_base_url=self.azure_cdn_base_url or None,
            default_cache_control=self.azure_default_cache_control or None,
            create_container_if_missing=self.azure_create_container_if_not_exist,
            public_access_level=PublicAccessLevel.parse(self.azure_public_access_type),
            strip_container_name=self.azure_remove_cn,
            transfer=TransferTuning(
                chunk_size_bytes=self.azure_upload_buffer_size,
                max_concurrent_chunks=self.azure_upload_max_buffers,
            ),
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    This is safe because settings don't change during runtime.
    For tests, you can call get_settings.cache_clear() to reset.
    """
    return Settings()
