"""
Domain models for the asset gateway.

These models describe a storage account, the assets we put into it and
the results we hand back to callers. Nothing here imports the Azure SDK;
the infrastructure layer translates between these values and the
storage client.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from . import naming


DEFAULT_CHUNK_SIZE_BYTES = 4 * 1024 * 1024  # 4 MiB
DEFAULT_MAX_CONCURRENT_CHUNKS = 20


class ConfigurationError(ValueError):
    """Raised when the storage configuration cannot be used."""
    pass


class PublicAccessLevel(Enum):
    """
    Anonymous read access granted to a newly created container.

    NONE creates a private container. Only BLOB and CONTAINER are passed
    to the storage service.
    """
    NONE = "none"
    BLOB = "blob"
    CONTAINER = "container"

    @classmethod
    def parse(cls, value: Optional[str]) -> "PublicAccessLevel":
        """Unknown or empty values fall back to a private container."""
        normalized = (value or "").strip().lower()
        for level in cls:
            if level.value == normalized:
                return level
        return cls.NONE


class CredentialPath(Enum):
    """Which authentication mechanism a storage client was built with."""
    SAS_TOKEN = "sas_token"
    SHARED_KEY = "shared_key"
    MANAGED_IDENTITY_CLIENT = "managed_identity_client"
    MANAGED_IDENTITY_DEFAULT = "managed_identity_default"


@dataclass(frozen=True)
class SharedKeyAuth:
    """
    Account key authentication.

    The account key can sign any request, including per-blob SAS tokens.
    An optional pre-issued account SAS token is used instead of the key
    for private assets.
    """
    account_key: str = field(repr=False)
    sas_token: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.account_key:
            raise ConfigurationError("account key is required for shared key auth")


@dataclass(frozen=True)
class ManagedIdentityAuth:
    """
    Platform identity, optionally pinned to a user-assigned client id.

    Requests are always authenticated with the identity. An account key,
    when configured, is only used to sign SAS tokens for public assets.
    """
    client_id: Optional[str] = None
    signing_key: Optional[str] = field(default=None, repr=False)


AuthMode = Union[SharedKeyAuth, ManagedIdentityAuth]


@dataclass(frozen=True)
class TransferTuning:
    """Chunking parameters handed to the storage client for uploads."""
    chunk_size_bytes: int = DEFAULT_CHUNK_SIZE_BYTES
    max_concurrent_chunks: int = DEFAULT_MAX_CONCURRENT_CHUNKS

    def __post_init__(self) -> None:
        if self.chunk_size_bytes < 1:
            raise ConfigurationError("chunk size must be positive")
        if self.max_concurrent_chunks < 1:
            raise ConfigurationError("max concurrent chunks must be positive")


@dataclass(frozen=True)
class StorageAccountConfig:
    """
    Everything the gateway needs to know about the storage account.

    Built once per process from settings and never mutated afterwards,
    so it can be shared freely between concurrent operations.
    """
    account: str
    auth: AuthMode
    container_name: str
    default_path: str = ""
    service_base_url: Optional[str] = None
    cdn_base_url: Optional[str] = None
    default_cache_control: Optional[str] = None
    create_container_if_missing: bool = False
    public_access_level: PublicAccessLevel = PublicAccessLevel.NONE
    strip_container_name: bool = False
    transfer: TransferTuning = field(default_factory=TransferTuning)

    def __post_init__(self) -> None:
        if not self.account:
            raise ConfigurationError("storage account name is required")
        if not self.container_name:
            raise ConfigurationError("container name is required")

    @property
    def endpoint(self) -> str:
        """Blob service URL, defaulting to the public Azure endpoint."""
        if self.service_base_url:
            return self.service_base_url
        return f"https://{self.account}.blob.core.windows.net"


@dataclass
class AssetDescriptor:
    """
    A single file handed to us by the host for one operation.

    `byte_stream` may be bytes, a binary file object or an async
    iterable of chunks. It is read exactly once per upload.
    """
    hash: str
    ext: str = ""
    mime: str = "application/octet-stream"
    byte_stream: Any = None

    @property
    def is_public(self) -> bool:
        return naming.is_public(self)


@dataclass(frozen=True)
class ExposureGrant:
    """The URL we expose for a blob and how long it is meant to be valid."""
    url: str
    expires_on: datetime
    signed: bool = False


@dataclass(frozen=True)
class UploadResult:
    """Outcome of an upload. Callers merge `url` back into their own records."""
    key: str
    url: str
    public: bool
    expires_on: datetime
    signed: bool = False


@dataclass(frozen=True)
class DeleteResult:
    """Key and canonical URL of the blob that was removed."""
    key: str
    url: str
