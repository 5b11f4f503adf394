"""
Access policy: which URL we hand out for a blob.

Public assets get a read-only SAS token valid for ten years appended to
the blob URL. Private assets get no per-object token at all. Their URL is
the client's own blob URL, which carries the account-level SAS token when
the credential resolver picked that path. The asymmetry is deliberate and
must not be "fixed" here; see DESIGN.md for the open question.

Signing is injected as a plain callable so this module stays free of the
Azure SDK. Token generation is a local HMAC computation, not a network
call, so nothing here performs I/O.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from .models import ExposureGrant, StorageAccountConfig

logger = logging.getLogger(__name__)

PUBLIC_URL_LIFETIME_YEARS = 10
PRIVATE_URL_LIFETIME = timedelta(hours=1)

# (container_name, blob_name, expires_on) -> SAS query string without "?"
TokenSigner = Callable[[str, str, datetime], str]


def _add_years(moment: datetime, years: int) -> datetime:
    try:
        return moment.replace(year=moment.year + years)
    except ValueError:
        # 29 February in a non-leap target year
        return moment.replace(year=moment.year + years, day=28)


def compute_expiry(is_public: bool, now: Optional[datetime] = None) -> datetime:
    """
    Expiry for an exposure URL.

    Public: the same instant ten calendar years later, standing in for
    "permanent". Private: one hour.
    """
    now = now or datetime.now(timezone.utc)
    if is_public:
        return _add_years(now, PUBLIC_URL_LIFETIME_YEARS)
    return now + PRIVATE_URL_LIFETIME


def rewrite_cdn(url: str, endpoint: str, cdn_base_url: Optional[str]) -> str:
    """Swap the storage origin for the CDN origin. Path and query are kept."""
    if not cdn_base_url:
        return url
    return url.replace(endpoint, cdn_base_url, 1)


def strip_container_name(url: str, container_name: str) -> str:
    """Drop the first `/{container}/` segment, for containers mapped to the web root."""
    segment = f"/{container_name}/"
    if segment not in url:
        return url
    return url.replace(segment, "/", 1)


def assign_exposure_url(
    config: StorageAccountConfig,
    blob_url: str,
    key: str,
    is_public: bool,
    signer: Optional[TokenSigner] = None,
    now: Optional[datetime] = None,
) -> ExposureGrant:
    """
    Decide the URL a caller receives for a blob.

    Args:
        config: Storage account configuration
        blob_url: The storage client's URL for the blob
        key: Blob name inside the container
        is_public: Classification from the naming policy
        signer: Issues blob SAS tokens; None when no account key is available
        now: Issuance time, defaults to the current UTC time

    Returns:
        ExposureGrant with the final URL and its intended expiry
    """
    expires_on = compute_expiry(is_public, now)
    signed = False

    if is_public:
        url = blob_url
        if signer is not None:
            token = signer(config.container_name, key, expires_on)
            url = f"{blob_url}?{token}"
            signed = True
        else:
            logger.warning(
                "No signing key available, exposing public blob without SAS token",
                extra={"key": key, "container": config.container_name},
            )
    else:
        url = blob_url

    url = rewrite_cdn(url, config.endpoint, config.cdn_base_url)

    if config.strip_container_name:
        url = strip_container_name(url, config.container_name)

    logger.debug(
        "Assigned exposure URL",
        extra={
            "key": key,
            "public": is_public,
            "signed": signed,
            "expires_on": expires_on.isoformat(),
        },
    )

    return ExposureGrant(url=url, expires_on=expires_on, signed=signed)
