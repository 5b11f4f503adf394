"""
FastAPI dependency injection.

Dependencies provide instances of services, clients, and configuration
to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be overridden for testing
- Configuration is centralized

Each dependency is a function that FastAPI calls when needed.
"""

import logging
from functools import partial
from typing import Annotated

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from ..config.settings import Settings, get_settings
from ..core.models import ConfigurationError, StorageAccountConfig
from ..infrastructure.storage.client import MockBlobServiceClient, MockBlobStore
from ..infrastructure.storage.gateway import BlobAssetGateway

logger = logging.getLogger(__name__)

# API Key security scheme
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

# Shared mock blob store (persists across requests in mock mode)
_mock_blob_store = None


def reset_mock_storage() -> None:
    """Forget everything held in mock storage. Used by tests."""
    global _mock_blob_store
    _mock_blob_store = None


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

async def verify_api_key(
    settings: Annotated[Settings, Depends(get_settings)],
    api_key: str = Security(api_key_header),
) -> str:
    """
    Validate API key from request header.

    Raises 403 if key is invalid or missing.
    """
    if not api_key:
        logger.warning("Request missing API key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="API key required. Provide X-API-Key header.",
        )

    if api_key not in settings.api_keys_list:
        logger.warning(
            "Invalid API key attempt",
            extra={"key_prefix": api_key[:8] if api_key else ""}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )

    return api_key


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_account_config(
    settings: Annotated[Settings, Depends(get_settings)],
) -> StorageAccountConfig:
    """
    Provide the immutable storage configuration.

    The app validates configuration at startup, so failing here means
    settings changed underneath us; report it as a server error.
    """
    try:
        return settings.to_account_config()
    except ConfigurationError as e:
        logger.error("Invalid storage configuration", extra={"error": str(e)})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Storage is not configured",
        )


def get_asset_gateway(
    settings: Annotated[Settings, Depends(get_settings)],
    config: Annotated[StorageAccountConfig, Depends(get_account_config)],
) -> BlobAssetGateway:
    """
    Provide the blob gateway.

    In mock mode, every request shares one in-memory blob store so that
    uploaded assets persist during the testing session.
    """
    global _mock_blob_store

    if settings.azure_mock_mode:
        if _mock_blob_store is None:
            _mock_blob_store = MockBlobStore()
            logger.info("Created shared mock blob store for session")
        logger.debug("Using shared mock blob store")
        return BlobAssetGateway(
            config,
            client_factory=partial(MockBlobServiceClient, store=_mock_blob_store),
        )

    return BlobAssetGateway(config)


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
AuthenticatedUser = Annotated[str, Depends(verify_api_key)]
AssetGatewayDep = Annotated[BlobAssetGateway, Depends(get_asset_gateway)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
