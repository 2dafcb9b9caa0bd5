"""
Route definitions for the catalogue API.

Endpoints under /api/catalog:
- GET  /items                                : all items, newest first
- GET  /items/search                         : items filtered by size/colours/text
- GET  /items/{item_id}                      : one item
- GET  /collections                          : collections by id
- GET  /collections/captions                 : id/caption pairs for menus
- GET  /collections/by-caption/{caption}     : resolve a caption to an id
- GET  /collections/{collection_id}/items    : items of one collection
- POST /cache/invalidate                     : drop the cached catalogue
- POST /cache/refresh                        : drop and reload it

Every read goes through the ``CatalogCache`` stored on the application
state. When the cache cannot be loaded the endpoints answer 503 rather
than an empty page, so an outage never looks like an empty catalogue.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ..exceptions import PopulationError
from .cache import CatalogCache
from .schemas import CollectionCaption, CollectionPage, Item, ItemFilter, ItemPage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


def get_catalog_cache(request: Request) -> CatalogCache:
    """Return the cache created by the application lifespan."""
    return request.app.state.catalog_cache


def _unavailable(exc: PopulationError) -> HTTPException:
    logger.error("Catalogue unavailable: %s", exc)
    return HTTPException(status_code=503, detail=str(exc))


@router.get("/items", response_model=ItemPage)
async def list_items(
    page: int = Query(default=1, ge=1, description="Page number (1-based)"),
    page_size: Optional[int] = Query(default=None, ge=1, le=200, description="Items per page"),
    cache: CatalogCache = Depends(get_catalog_cache),
) -> ItemPage:
    try:
        return await cache.list_all_items(page, page_size)
    except PopulationError as exc:
        raise _unavailable(exc)


@router.get("/items/search", response_model=ItemPage)
async def search_items(
    width_from: Optional[int] = Query(default=None, ge=0),
    width_to: Optional[int] = Query(default=None, ge=0),
    height_from: Optional[int] = Query(default=None, ge=0),
    height_to: Optional[int] = Query(default=None, ge=0),
    colors_from: Optional[int] = Query(default=None, ge=0),
    colors_to: Optional[int] = Query(default=None, ge=0),
    q: Optional[str] = Query(default=None, description="Text matched against item and album captions"),
    page: int = Query(default=1, ge=1),
    page_size: Optional[int] = Query(default=None, ge=1, le=200),
    cache: CatalogCache = Depends(get_catalog_cache),
) -> ItemPage:
    """Return items matching the filters.

    Each bound is optional and inclusive; ``q`` matches, regardless of
    case, either the design caption or its album caption.
    """
    item_filter = ItemFilter(
        width_from=width_from,
        width_to=width_to,
        height_from=height_from,
        height_to=height_to,
        colors_from=colors_from,
        colors_to=colors_to,
        search_text=q,
    )
    try:
        return await cache.list_filtered_items(item_filter, page, page_size)
    except PopulationError as exc:
        raise _unavailable(exc)


@router.get("/items/{item_id}", response_model=Item)
async def get_item(item_id: int, cache: CatalogCache = Depends(get_catalog_cache)) -> Item:
    try:
        item = await cache.get_item_by_id(item_id)
    except PopulationError as exc:
        raise _unavailable(exc)
    if item is None:
        raise HTTPException(status_code=404, detail="Item not found")
    return item


@router.get("/collections", response_model=CollectionPage)
async def list_collections(
    page: int = Query(default=1, ge=1),
    page_size: Optional[int] = Query(default=None, ge=1, le=200),
    cache: CatalogCache = Depends(get_catalog_cache),
) -> CollectionPage:
    try:
        return await cache.list_collections(page, page_size)
    except PopulationError as exc:
        raise _unavailable(exc)


@router.get("/collections/captions", response_model=List[CollectionCaption])
async def list_collection_captions(
    cache: CatalogCache = Depends(get_catalog_cache),
) -> List[CollectionCaption]:
    try:
        captions = await cache.list_all_collection_captions()
    except PopulationError as exc:
        raise _unavailable(exc)
    return sorted(captions, key=lambda c: c.caption)


@router.get("/collections/by-caption/{caption}")
async def resolve_collection_caption(
    caption: str, cache: CatalogCache = Depends(get_catalog_cache)
) -> Dict[str, int]:
    try:
        collection_id = await cache.get_collection_id_by_caption(caption)
    except PopulationError as exc:
        raise _unavailable(exc)
    if collection_id is None:
        raise HTTPException(status_code=404, detail="Collection not found")
    return {"collection_id": collection_id}


@router.get("/collections/{collection_id}/items", response_model=ItemPage)
async def list_collection_items(
    collection_id: int,
    page: int = Query(default=1, ge=1),
    page_size: Optional[int] = Query(default=None, ge=1, le=200),
    cache: CatalogCache = Depends(get_catalog_cache),
) -> ItemPage:
    try:
        return await cache.list_items_by_collection(collection_id, page, page_size)
    except PopulationError as exc:
        raise _unavailable(exc)


@router.post("/cache/invalidate")
async def invalidate_cache(cache: CatalogCache = Depends(get_catalog_cache)) -> Dict[str, str]:
    await cache.invalidate()
    return {"state": cache.state.value}


@router.post("/cache/refresh")
async def refresh_cache(cache: CatalogCache = Depends(get_catalog_cache)) -> Dict[str, str]:
    try:
        await cache.refresh()
    except PopulationError as exc:
        raise _unavailable(exc)
    return {"state": cache.state.value}
