"""
Upload and delete orchestration against Azure Blob Storage.

BlobAssetGateway is what a host calls per file operation. It resolves a
client, derives the blob name, applies the access policy and moves the
bytes. Each call is independent: the only shared state is the immutable
StorageAccountConfig, so calls can run concurrently for different assets.

Results are returned as values. The host decides whether to copy the URL
back onto its own file record.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from azure.core.exceptions import AzureError, ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import ContentSettings

from ...core.access_policy import assign_exposure_url
from ...core.models import (
    AssetDescriptor,
    DeleteResult,
    PublicAccessLevel,
    StorageAccountConfig,
    UploadResult,
)
from ...core.naming import resolve_key
from .client import BlobNotFoundError, StorageError, strip_query
from .credentials import ServiceClientFactory, create_blob_service_client

logger = logging.getLogger(__name__)


class BlobAssetGateway:
    """
    Stores and deletes assets in one container of a storage account.

    No retries happen here. Repeating an upload overwrites the blob and
    is safe; repeating a delete raises BlobNotFoundError.
    """

    def __init__(
        self,
        config: StorageAccountConfig,
        client_factory: Optional[ServiceClientFactory] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory
        self._clock = clock

    @property
    def config(self) -> StorageAccountConfig:
        return self._config

    async def upload(self, asset: AssetDescriptor) -> UploadResult:
        """
        Upload an asset and return its key and exposure URL.

        The URL is decided before the transfer starts, so a URL on its
        own is not proof that the upload completed.
        """
        config = self._config
        key = resolve_key(config.default_path, asset)
        public = asset.is_public

        async with await create_blob_service_client(
            config, asset, client_factory=self._client_factory
        ) as resolved:
            container = resolved.client.get_container_client(config.container_name)
            blob = container.get_blob_client(key)

            if config.create_container_if_missing:
                await self._ensure_container(container)

            grant = assign_exposure_url(
                config,
                blob.url,
                key,
                public,
                signer=resolved.signer,
                now=self._clock() if self._clock else None,
            )

            content_settings = ContentSettings(
                content_type=asset.mime,
                cache_control=config.default_cache_control or None,
            )

            try:
                await blob.upload_blob(
                    asset.byte_stream,
                    overwrite=True,
                    content_settings=content_settings,
                    max_concurrency=config.transfer.max_concurrent_chunks,
                )
            except AzureError as e:
                logger.error(
                    "Failed to upload blob",
                    extra={
                        "key": key,
                        "container": config.container_name,
                        "credential_path": resolved.path.value,
                        "error": str(e),
                    }
                )
                raise StorageError(f"Upload failed: {e}") from e

        logger.info(
            "Uploaded blob",
            extra={
                "key": key,
                "container": config.container_name,
                "public": public,
                "signed": grant.signed,
            }
        )

        return UploadResult(
            key=key,
            url=grant.url,
            public=public,
            expires_on=grant.expires_on,
            signed=grant.signed,
        )

    async def upload_stream(self, asset: AssetDescriptor) -> UploadResult:
        """Same contract as upload; the host only supplies bytes differently."""
        return await self.upload(asset)

    async def delete(self, asset: AssetDescriptor) -> DeleteResult:
        """
        Delete an asset's blob.

        Returns the canonical blob URL (no SAS token, no CDN rewrite) as
        a record of what was removed.
        """
        config = self._config
        key = resolve_key(config.default_path, asset)

        async with await create_blob_service_client(
            config, asset, client_factory=self._client_factory
        ) as resolved:
            container = resolved.client.get_container_client(config.container_name)
            blob = container.get_blob_client(key)

            try:
                await blob.delete_blob()
            except ResourceNotFoundError as e:
                logger.warning(
                    "Blob to delete was not found",
                    extra={"key": key, "container": config.container_name}
                )
                raise BlobNotFoundError(f"Blob not found: {key}") from e
            except AzureError as e:
                logger.error(
                    "Failed to delete blob",
                    extra={
                        "key": key,
                        "container": config.container_name,
                        "error": str(e),
                    }
                )
                raise StorageError(f"Delete failed: {e}") from e

            url = strip_query(blob.url)

        logger.info(
            "Deleted blob",
            extra={"key": key, "container": config.container_name}
        )

        return DeleteResult(key=key, url=url)

    async def _ensure_container(self, container) -> None:
        level = self._config.public_access_level
        kwargs = {}
        if level in (PublicAccessLevel.BLOB, PublicAccessLevel.CONTAINER):
            kwargs["public_access"] = level.value

        try:
            await container.create_container(**kwargs)
            logger.info(
                "Created container",
                extra={
                    "container": self._config.container_name,
                    "public_access": level.value,
                }
            )
        except ResourceExistsError:
            pass
        except AzureError as e:
            logger.error(
                "Failed to create container",
                extra={"container": self._config.container_name, "error": str(e)}
            )
            raise StorageError(f"Container creation failed: {e}") from e
