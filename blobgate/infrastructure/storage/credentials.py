"""
Credential resolution for the blob service.

Every operation gets its own client. Which credential backs it depends
on the configured auth mode and on whether the asset is public:

1. Shared key with an account SAS token, private asset: anonymous client
   scoped by the SAS token. The account key is kept off this path.
2. Shared key otherwise: client signing requests with the account key.
3. Managed identity with a client id: user-assigned identity.
4. Managed identity otherwise: the default identity chain.

Under managed identity an optional account key is kept for signing
public SAS tokens only; requests still go through the identity.

Unknown auth modes never reach this module; they are rejected when
settings are converted into a StorageAccountConfig.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from azure.core.credentials import AzureNamedKeyCredential
from azure.identity.aio import DefaultAzureCredential
from azure.storage.blob.aio import BlobServiceClient

from ...core.access_policy import TokenSigner
from ...core.models import (
    AssetDescriptor,
    CredentialPath,
    ManagedIdentityAuth,
    SharedKeyAuth,
    StorageAccountConfig,
)
from .client import BlobServiceClientLike, make_sas_signer

logger = logging.getLogger(__name__)

# (account_url, credential, **client_options) -> service client
ServiceClientFactory = Callable[..., BlobServiceClientLike]


def select_credential_path(config: StorageAccountConfig, is_public: bool) -> CredentialPath:
    """Pick the authentication mechanism. First match wins."""
    auth = config.auth

    if isinstance(auth, SharedKeyAuth):
        if auth.sas_token and not is_public:
            return CredentialPath.SAS_TOKEN
        return CredentialPath.SHARED_KEY

    if isinstance(auth, ManagedIdentityAuth):
        if auth.client_id:
            return CredentialPath.MANAGED_IDENTITY_CLIENT
        return CredentialPath.MANAGED_IDENTITY_DEFAULT

    raise TypeError(f"Unsupported auth mode: {type(auth).__name__}")


def sas_account_url(endpoint: str, sas_token: str) -> str:
    """Append an account SAS token to the service endpoint."""
    if sas_token.startswith("?"):
        return f"{endpoint}{sas_token}"
    return f"{endpoint}?{sas_token}"


@dataclass
class ResolvedClient:
    """
    A service client together with how it was authenticated.

    Use as an async context manager; leaving the block closes the client
    and any identity credential opened for it.
    """
    path: CredentialPath
    client: BlobServiceClientLike
    credential: Any = None
    signer: Optional[TokenSigner] = None

    async def close(self) -> None:
        await self.client.close()
        if self.path in (
            CredentialPath.MANAGED_IDENTITY_CLIENT,
            CredentialPath.MANAGED_IDENTITY_DEFAULT,
        ) and hasattr(self.credential, "close"):
            await self.credential.close()

    async def __aenter__(self) -> "ResolvedClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()


async def create_blob_service_client(
    config: StorageAccountConfig,
    asset: AssetDescriptor,
    client_factory: Optional[ServiceClientFactory] = None,
) -> ResolvedClient:
    """
    Build an authenticated blob service client for one operation.

    Args:
        config: Storage account configuration
        asset: The asset being operated on (its classification matters)
        client_factory: Service client constructor, the Azure SDK by default

    Returns:
        ResolvedClient with the client, credential and, when the account
        key is available, a SAS signer for public URLs
    """
    factory = client_factory or BlobServiceClient
    path = select_credential_path(config, asset.is_public)
    endpoint = config.endpoint
    options = {
        "max_block_size": config.transfer.chunk_size_bytes,
        "max_single_put_size": config.transfer.chunk_size_bytes,
    }

    auth = config.auth
    signer: Optional[TokenSigner] = None
    account_url = endpoint
    owns_credential = False

    if path is CredentialPath.SAS_TOKEN:
        credential = None
        account_url = sas_account_url(endpoint, auth.sas_token)
    elif path is CredentialPath.SHARED_KEY:
        credential = AzureNamedKeyCredential(config.account, auth.account_key)
        signer = make_sas_signer(config.account, auth.account_key)
    else:
        if path is CredentialPath.MANAGED_IDENTITY_CLIENT:
            credential = DefaultAzureCredential(managed_identity_client_id=auth.client_id)
        else:
            credential = DefaultAzureCredential()
        owns_credential = True
        # The key never authenticates requests here, it only signs tokens
        if auth.signing_key:
            signer = make_sas_signer(config.account, auth.signing_key)

    logger.debug(
        "Resolved blob service credential",
        extra={
            "account": config.account,
            "endpoint": endpoint,
            "credential_path": path.value,
            "public": asset.is_public,
            "can_sign": signer is not None,
        }
    )

    try:
        client = factory(account_url, credential=credential, **options)
    except Exception:
        if owns_credential:
            await credential.close()
        raise

    return ResolvedClient(path=path, client=client, credential=credential, signer=signer)
