"""
File upload and delete endpoints.

This is the host-facing surface of the gateway:
1. Client uploads a file with its content hash
2. Gateway stores it in the configured container
3. Response carries the URL to hand out for the asset

Whether an asset is public is decided by its hash: hashes containing
"public" get a long-lived signed URL, everything else relies on the
account SAS token.
"""

import logging
from datetime import datetime
from pathlib import PurePosixPath
from typing import Annotated, AsyncIterator, Optional

from fastapi import APIRouter, File, Form, HTTPException, Query, UploadFile, status
from pydantic import BaseModel, Field

from ...core.models import AssetDescriptor
from ...infrastructure.storage.client import BlobNotFoundError, StorageError
from ..dependencies import AssetGatewayDep, AuthenticatedUser

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class FileUploadResponse(BaseModel):
    """Response after storing a file."""
    key: str = Field(description="Blob name inside the container")
    url: str = Field(description="URL to hand out for the file")
    public: bool = Field(description="Whether the file was classified public")
    expires_on: datetime = Field(description="When the URL is meant to stop working")


class FileDeleteResponse(BaseModel):
    """Response after deleting a file."""
    key: str = Field(description="Blob name that was removed")
    url: str = Field(description="Canonical URL the blob had")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def iter_upload_chunks(file: UploadFile, chunk_size: int) -> AsyncIterator[bytes]:
    """Read an upload in chunks without blocking the event loop."""
    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        yield chunk


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=FileUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a file",
    description="Store a file in blob storage and return its exposure URL",
)
async def upload_file(
    file: Annotated[UploadFile, File(description="File content")],
    hash: Annotated[str, Form(min_length=1, description="Content hash used as blob name")],
    ext: Annotated[Optional[str], Form(description="Extension including the dot")] = None,
    api_key: AuthenticatedUser = None,
    gateway: AssetGatewayDep = None,
) -> FileUploadResponse:
    """
    Upload a file.

    The extension defaults to the uploaded filename's suffix. The file
    is streamed to storage in chunks rather than read into memory.
    """
    if ext is None:
        ext = PurePosixPath(file.filename or "").suffix

    asset = AssetDescriptor(
        hash=hash,
        ext=ext,
        mime=file.content_type or "application/octet-stream",
        byte_stream=iter_upload_chunks(file, gateway.config.transfer.chunk_size_bytes),
    )

    try:
        result = await gateway.upload_stream(asset)
    except StorageError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e),
        )

    return FileUploadResponse(
        key=result.key,
        url=result.url,
        public=result.public,
        expires_on=result.expires_on,
    )


@router.delete(
    "/{hash}",
    response_model=FileDeleteResponse,
    summary="Delete a file",
    description="Remove a file from blob storage",
    responses={404: {"description": "File not found"}},
)
async def delete_file(
    hash: str,
    ext: Annotated[str, Query(description="Extension including the dot")] = "",
    api_key: AuthenticatedUser = None,
    gateway: AssetGatewayDep = None,
) -> FileDeleteResponse:
    """Delete a file by hash and extension."""
    asset = AssetDescriptor(hash=hash, ext=ext)

    try:
        result = await gateway.delete(asset)
    except BlobNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"File not found: {hash}{ext}",
        )
    except StorageError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e),
        )

    return FileDeleteResponse(key=result.key, url=result.url)
