"""
URL helpers for catalogue entries.

Image and PDF locations are a pure function of the owning collection and
the item identifier, so they live here rather than in cache state. The
slug helpers build the human-readable addresses that
``CatalogCache.get_collection_id_by_caption`` and
``CatalogCache.find_item_id_by_page`` resolve back to identifiers.
"""

from __future__ import annotations

import re
from typing import Optional

from ..config import DEFAULT_CDN_BASE_URL

_WHITESPACE = re.compile(r"\s+")


def _dashed(caption: str) -> str:
    return _WHITESPACE.sub("-", caption or "")


def image_url(
    collection_id: int, item_id: int, base_url: str = DEFAULT_CDN_BASE_URL
) -> Optional[str]:
    """Return the preview image URL, or ``None`` for non-positive ids."""
    if collection_id <= 0 or item_id <= 0:
        return None
    return f"{base_url}/photos/{collection_id}/{item_id}/4.jpg"


def download_url(
    collection_id: int, item_id: int, base_url: str = DEFAULT_CDN_BASE_URL
) -> Optional[str]:
    """Return the PDF kit URL, or ``None`` for non-positive ids."""
    if collection_id <= 0 or item_id <= 0:
        return None
    return f"{base_url}/pdfs/{collection_id}/Stitch{item_id}_Kit.pdf"


def item_page_slug(caption: str, collection_id: int, page_within_collection: int) -> str:
    """Build the public page address of an item.

    The address carries the zero-based position within the collection,
    e.g. ``Red-Rose-12-0-Free-Design.aspx`` for the first item of
    collection 12.
    """
    return f"{_dashed(caption)}-{collection_id}-{page_within_collection - 1}-Free-Design.aspx"


def item_image_slug(caption: str, item_id: int) -> str:
    """Build the public small-image address of an item."""
    return f"/{_dashed(caption)}-{item_id}-S-Free-Design.jpg"
