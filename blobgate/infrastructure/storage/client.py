"""
Azure Blob Storage client capability.

The gateway talks to the async clients from `azure.storage.blob.aio`.
This module holds the pieces around them:
- The error types the gateway raises
- A protocol describing the small slice of the SDK we rely on
- SAS token signing with the account key
- An in-memory mock of the SDK for local development and tests

Mock mode keeps blobs in a shared dictionary, enabling API testing
without provisioning a storage account.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Protocol
from urllib.parse import quote, urlsplit

from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import BlobSasPermissions, ContentSettings, generate_blob_sas

from ...core.access_policy import TokenSigner

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when storage operations fail."""
    pass


class BlobNotFoundError(StorageError):
    """Raised when deleting a blob that does not exist."""
    pass


class BlobClientLike(Protocol):
    """The blob operations the gateway uses."""

    @property
    def url(self) -> str:
        ...

    async def upload_blob(self, data: Any, **kwargs: Any) -> Any:
        ...

    async def delete_blob(self, **kwargs: Any) -> None:
        ...


class ContainerClientLike(Protocol):
    """The container operations the gateway uses."""

    async def create_container(self, **kwargs: Any) -> Any:
        ...

    def get_blob_client(self, blob: str) -> BlobClientLike:
        ...


class BlobServiceClientLike(Protocol):
    """
    Protocol for the blob service client.

    Both `azure.storage.blob.aio.BlobServiceClient` and
    `MockBlobServiceClient` satisfy it, so the gateway never needs to
    know which one it was given.
    """

    @property
    def url(self) -> str:
        ...

    def get_container_client(self, container: str) -> ContainerClientLike:
        ...

    async def close(self) -> None:
        ...


def make_sas_signer(account: str, account_key: str) -> TokenSigner:
    """
    Build a signer issuing read-only blob SAS tokens.

    Signing is an HMAC over the token fields using the account key, so
    it happens locally without calling the storage service.
    """
    def sign(container_name: str, blob_name: str, expires_on: datetime) -> str:
        return generate_blob_sas(
            account_name=account,
            container_name=container_name,
            blob_name=blob_name,
            account_key=account_key,
            permission=BlobSasPermissions(read=True),
            expiry=expires_on,
        )

    return sign


def strip_query(url: str) -> str:
    """Remove any query string (SAS token) from a URL."""
    return url.split("?", 1)[0]


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

@dataclass
class StoredBlob:
    """A blob held in mock storage."""
    data: bytes
    content_type: Optional[str] = None
    cache_control: Optional[str] = None
    max_concurrency: int = 1


@dataclass
class MockBlobStore:
    """
    Shared state behind mock clients.

    A new service client is built for every operation, so the blobs
    have to live outside the client for uploads to be visible to later
    deletes.
    """
    containers: dict[str, dict[str, StoredBlob]] = field(default_factory=dict)
    public_access: dict[str, Optional[str]] = field(default_factory=dict)

    def get_blob(self, container: str, blob: str) -> Optional[StoredBlob]:
        return self.containers.get(container, {}).get(blob)


async def _read_all(data: Any) -> bytes:
    if data is None:
        return b""
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if isinstance(data, str):
        return data.encode("utf-8")
    if hasattr(data, "read"):
        return data.read()
    if hasattr(data, "__aiter__"):
        return b"".join([chunk async for chunk in data])
    return b"".join(data)


class MockBlobClient:
    """In-memory stand-in for `azure.storage.blob.aio.BlobClient`."""

    def __init__(self, service: "MockBlobServiceClient", container: str, blob: str) -> None:
        self._service = service
        self.container_name = container
        self.blob_name = blob

    @property
    def url(self) -> str:
        base, query = self._service._split_url()
        url = f"{base}/{self.container_name}/{quote(self.blob_name, safe='~/')}"
        return f"{url}?{query}" if query else url

    async def upload_blob(
        self,
        data: Any,
        overwrite: bool = False,
        content_settings: Optional[ContentSettings] = None,
        max_concurrency: int = 1,
        **kwargs: Any,
    ) -> dict[str, Any]:
        store = self._service.store
        if self.container_name not in store.containers:
            raise ResourceNotFoundError(f"Container not found: {self.container_name}")

        blobs = store.containers[self.container_name]
        if self.blob_name in blobs and not overwrite:
            raise ResourceExistsError(f"Blob already exists: {self.blob_name}")

        payload = await _read_all(data)
        blobs[self.blob_name] = StoredBlob(
            data=payload,
            content_type=content_settings.content_type if content_settings else None,
            cache_control=content_settings.cache_control if content_settings else None,
            max_concurrency=max_concurrency,
        )

        logger.debug(
            "Stored blob in mock storage",
            extra={
                "container": self.container_name,
                "blob": self.blob_name,
                "size_bytes": len(payload),
            }
        )

        return {"etag": str(len(blobs)), "last_modified": None}

    async def delete_blob(self, **kwargs: Any) -> None:
        blobs = self._service.store.containers.get(self.container_name, {})
        if self.blob_name not in blobs:
            raise ResourceNotFoundError(f"Blob not found: {self.blob_name}")
        del blobs[self.blob_name]


class MockContainerClient:
    """In-memory stand-in for `azure.storage.blob.aio.ContainerClient`."""

    def __init__(self, service: "MockBlobServiceClient", container: str) -> None:
        self._service = service
        self.container_name = container

    async def create_container(
        self,
        public_access: Optional[str] = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        store = self._service.store
        if self.container_name in store.containers:
            raise ResourceExistsError(f"Container already exists: {self.container_name}")
        store.containers[self.container_name] = {}
        store.public_access[self.container_name] = public_access
        return {}

    def get_blob_client(self, blob: str) -> MockBlobClient:
        return MockBlobClient(self._service, self.container_name, blob)


class MockBlobServiceClient:
    """
    In-memory storage for local development.

    Mirrors the async Azure client closely enough for the gateway:
    URLs are built the same way (including a SAS query string carried
    on the account URL) and missing or existing resources raise the
    same `azure.core` exceptions.

    Not suitable for production, but perfect for development and testing.
    """

    def __init__(
        self,
        account_url: str,
        credential: Any = None,
        store: Optional[MockBlobStore] = None,
        **kwargs: Any,
    ) -> None:
        self.account_url = account_url
        self.credential = credential
        self.options = kwargs
        self.store = store if store is not None else MockBlobStore()
        self.closed = False

    @property
    def url(self) -> str:
        return self.account_url

    def _split_url(self) -> tuple[str, str]:
        parts = urlsplit(self.account_url)
        base = f"{parts.scheme}://{parts.netloc}{parts.path}".rstrip("/")
        return base, parts.query

    def get_container_client(self, container: str) -> MockContainerClient:
        return MockContainerClient(self, container)

    async def close(self) -> None:
        self.closed = True

    async def __aenter__(self) -> "MockBlobServiceClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
