"""
Core asset gateway logic.

This package is framework-agnostic: it doesn't import FastAPI or the
Azure SDK. Naming and access policy are pure functions over immutable
configuration, so they can be tested without a storage account.
"""

from .access_policy import (
    TokenSigner,
    assign_exposure_url,
    compute_expiry,
    rewrite_cdn,
    strip_container_name,
)
from .models import (
    AssetDescriptor,
    AuthMode,
    ConfigurationError,
    CredentialPath,
    DeleteResult,
    ExposureGrant,
    ManagedIdentityAuth,
    PublicAccessLevel,
    SharedKeyAuth,
    StorageAccountConfig,
    TransferTuning,
    UploadResult,
)
from .naming import is_public, resolve_key

__all__ = [
    "AssetDescriptor",
    "AuthMode",
    "ConfigurationError",
    "CredentialPath",
    "DeleteResult",
    "ExposureGrant",
    "ManagedIdentityAuth",
    "PublicAccessLevel",
    "SharedKeyAuth",
    "StorageAccountConfig",
    "TransferTuning",
    "UploadResult",
    "TokenSigner",
    "assign_exposure_url",
    "compute_expiry",
    "rewrite_cdn",
    "strip_container_name",
    "is_public",
    "resolve_key",
]
