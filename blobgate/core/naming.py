"""
Naming policy: where an asset lives and whether it is public.

Public/private classification is a caller-controlled signal. Upstream
code marks an asset public by putting the word "public" somewhere in its
hash. Keep that rule in this module so it can later be replaced by an
explicit flag without touching the access policy.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import AssetDescriptor


PUBLIC_MARKER = "public"


def is_public(asset: "AssetDescriptor") -> bool:
    """Case-sensitive substring match, no anchoring."""
    return PUBLIC_MARKER in asset.hash


def resolve_key(path_prefix: str, asset: "AssetDescriptor") -> str:
    """
    Build the blob name for an asset.

    Plain concatenation: `{prefix}/{hash}{ext}`. Slashes are not
    normalized, so prefixes should not end with one.
    """
    prefix = (path_prefix or "").strip()
    return f"{prefix}/{asset.hash}{asset.ext}"
