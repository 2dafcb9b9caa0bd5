"""
Pydantic schema definitions for the catalog module.

``Item`` and ``Collection`` are the two entity kinds mirrored by the
catalog cache. They are frozen: the cache hands out the same instances
to every reader, so nothing outside the cache may mutate them. The
``ItemPage`` and ``CollectionPage`` models bundle a slice of results
with pagination metadata so that clients know how many pages exist.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Item(BaseModel):
    """A single downloadable pattern design.

    ``page_within_collection`` is the 1-based position of the item in
    its owning collection and ``global_page_ordinal`` its 1-based
    position across the whole catalogue. ``image_url`` and
    ``download_url`` are either stored on the record or derived from
    ``collection_id`` and ``item_id``; they are ``None`` only when
    neither is possible.
    """

    model_config = ConfigDict(frozen=True)

    item_id: int
    collection_id: int = 0
    caption: str = ""
    description: str = ""
    notes: str = ""
    text: str = ""
    width: int = 0
    height: int = 0
    color_count: int = 0
    download_count: int = 0
    page_within_collection: int = 0
    global_page_ordinal: int = 0
    image_url: Optional[str] = None
    download_url: Optional[str] = None


class Collection(BaseModel):
    """A themed grouping of items (an album)."""

    model_config = ConfigDict(frozen=True)

    collection_id: int
    caption: str


class CollectionCaption(BaseModel):
    """Identifier/caption pair used to build navigation menus."""

    model_config = ConfigDict(frozen=True)

    collection_id: int
    caption: str


class ItemFilter(BaseModel):
    """Attribute-range and free-text filter for item listings.

    Every bound is inclusive and independently optional: a missing bound
    leaves that side of the range open. ``search_text`` matches, without
    regard to case, a substring of the item caption or of the owning
    collection's caption.
    """

    width_from: Optional[int] = None
    width_to: Optional[int] = None
    height_from: Optional[int] = None
    height_to: Optional[int] = None
    colors_from: Optional[int] = None
    colors_to: Optional[int] = None
    search_text: Optional[str] = None


class ItemPage(BaseModel):
    """A page of items returned by the listing operations."""

    items: List[Item] = Field(default_factory=list)
    total_items: int
    total_pages: int
    page: int
    page_size: int
    # Only set by the by-collection listing.
    collection_caption: Optional[str] = None


class CollectionPage(BaseModel):
    """A page of collections ordered by identifier."""

    collections: List[Collection] = Field(default_factory=list)
    total_items: int
    total_pages: int
    page: int
    page_size: int
