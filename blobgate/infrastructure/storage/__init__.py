"""
Azure Blob Storage integration for asset uploads and deletes.

Includes mock mode for local development without credentials.
"""

from .client import (
    BlobNotFoundError,
    MockBlobServiceClient,
    MockBlobStore,
    StorageError,
    make_sas_signer,
)
from .credentials import ResolvedClient, create_blob_service_client, select_credential_path
from .gateway import BlobAssetGateway

__all__ = [
    "BlobAssetGateway",
    "BlobNotFoundError",
    "MockBlobServiceClient",
    "MockBlobStore",
    "ResolvedClient",
    "StorageError",
    "create_blob_service_client",
    "make_sas_signer",
    "select_credential_path",
]
