"""
In-process read-through cache over the catalogue table.

The cache mirrors every design and album of the backing store in
memory and answers all read queries from that mirror. Population is a
full scan, performed lazily on first use and shared by every request
that arrives while it is running (single flight). A successful scan is
published as one immutable snapshot, so a reader sees either the whole
catalogue or none of it.

There is no background refresh: rows written to the backing store after
the last population stay invisible until ``invalidate()`` (or
``refresh()``) is called. Operators who publish new designs must trigger
one of those.

The cache is meant to be driven from a single asyncio event loop. Only
``ensure_populated()`` suspends; every query runs synchronously once it
holds a snapshot.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from ..config import DEFAULT_CDN_BASE_URL, DEFAULT_PAGE_SIZE
from ..exceptions import PopulationError
from .backend import COLLECTION_ENTITY, ITEM_ENTITY, CatalogBackend
from .mapping import check_ordinals, map_collection, map_item
from .pagination import paginate
from .schemas import (
    Collection,
    CollectionCaption,
    CollectionPage,
    Item,
    ItemFilter,
    ItemPage,
)

logger = logging.getLogger(__name__)


class CacheState(str, Enum):
    UNINITIALIZED = "uninitialized"
    POPULATING = "populating"
    READY = "ready"


@dataclass(frozen=True)
class _Snapshot:
    """One fully loaded, read-only copy of the catalogue."""

    items: Mapping[int, Item]
    collections: Mapping[int, Collection]
    # Descending global ordinal.
    items_by_ordinal: Tuple[Item, ...]
    # Per collection, descending position within the collection.
    items_by_collection: Mapping[int, Tuple[Item, ...]]


def _build_snapshot(items: Dict[int, Item], collections: Dict[int, Collection]) -> _Snapshot:
    # item_id breaks ties so that pagination stays deterministic even if
    # ordinals are duplicated upstream.
    by_ordinal = sorted(
        items.values(), key=lambda i: (i.global_page_ordinal, i.item_id), reverse=True
    )
    grouped: Dict[int, List[Item]] = {}
    for item in items.values():
        grouped.setdefault(item.collection_id, []).append(item)
    by_collection = {
        collection_id: tuple(
            sorted(members, key=lambda i: (i.page_within_collection, i.item_id), reverse=True)
        )
        for collection_id, members in grouped.items()
    }
    return _Snapshot(
        items=MappingProxyType(items),
        collections=MappingProxyType(collections),
        items_by_ordinal=tuple(by_ordinal),
        items_by_collection=MappingProxyType(by_collection),
    )


def _in_range(value: int, low: Optional[int], high: Optional[int]) -> bool:
    if low is not None and value < low:
        return False
    if high is not None and value > high:
        return False
    return True


class CatalogCache:
    """Read-through cache of catalogue items and collections.

    Parameters
    ----------
    backend : CatalogBackend
        Source of raw records; only its paginated ``scan`` is used.
    default_page_size : int
        Page size used by the listings when the caller passes none.
    cdn_base_url : str
        Base URL for derived image and PDF locations.
    """

    def __init__(
        self,
        backend: CatalogBackend,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        cdn_base_url: str = DEFAULT_CDN_BASE_URL,
    ) -> None:
        self._backend = backend
        self.default_page_size = max(1, int(default_page_size))
        self.cdn_base_url = cdn_base_url
        self._snapshot: Optional[_Snapshot] = None
        self._population: Optional["asyncio.Task[_Snapshot]"] = None

    # ------------------------------------------------------------------
    # Lifecycle

    @property
    def state(self) -> CacheState:
        if self._snapshot is not None:
            return CacheState.READY
        if self._population is not None:
            return CacheState.POPULATING
        return CacheState.UNINITIALIZED

    @property
    def is_ready(self) -> bool:
        return self._snapshot is not None

    async def ensure_populated(self) -> None:
        """Make sure the catalogue is loaded, loading it if necessary.

        Returns at once when the cache is ready. Otherwise joins the
        population already in flight or starts one; concurrent callers
        always share a single scan of the backing store. Cancelling a
        waiting caller does not cancel the population itself.

        Raises
        ------
        PopulationError
            If the scan failed. The cache is left uninitialized and the
            next call starts a new attempt.
        """
        await self._current_snapshot()

    async def _current_snapshot(self) -> _Snapshot:
        snapshot = self._snapshot
        if snapshot is not None:
            return snapshot
        task = self._population
        if task is None:
            logger.debug("First access, populating catalog cache")
            task = asyncio.get_running_loop().create_task(self._populate())
            task.add_done_callback(self._population_done)
            self._population = task
        else:
            logger.debug("Waiting for catalog population in progress")
        # The snapshot of the population we waited on is returned even if
        # an invalidation dropped it in the meantime.
        return await asyncio.shield(task)

    def _population_done(self, task: "asyncio.Task[_Snapshot]") -> None:
        if self._population is task:
            self._population = None
        # Retrieve the outcome so an attempt nobody waits on any more is
        # not reported as an unretrieved task exception.
        if not task.cancelled():
            task.exception()

    async def _scan_all(self, entity_type: str) -> List[Dict]:
        records: List[Dict] = []
        token = None
        pages = 0
        while True:
            page = await self._backend.scan(entity_type, token)
            pages += 1
            records.extend(page.records or [])
            token = page.next_token
            if not token:
                break
        logger.debug("Scanned %d %s records in %d pages", len(records), entity_type, pages)
        return records

    async def _populate(self) -> _Snapshot:
        logger.info("Starting catalog cache population")
        try:
            item_records = await self._scan_all(ITEM_ENTITY)
            collection_records = await self._scan_all(COLLECTION_ENTITY)

            items: Dict[int, Item] = {}
            for record in item_records:
                item = map_item(record, self.cdn_base_url)
                if item is not None:
                    items[item.item_id] = item
            collections: Dict[int, Collection] = {}
            for record in collection_records:
                collection = map_collection(record)
                if collection is not None:
                    collections[collection.collection_id] = collection
            snapshot = _build_snapshot(items, collections)
        except Exception as exc:
            self._population = None
            logger.error("Catalog cache population failed: %s", exc, exc_info=True)
            raise PopulationError(str(exc) or type(exc).__name__) from exc

        discarded = len(item_records) + len(collection_records) - len(items) - len(collections)
        if discarded:
            logger.warning("Discarded %d malformed or duplicate catalog records", discarded)
        for problem in check_ordinals(items.values()):
            logger.warning("Catalog ordinal check: %s", problem)

        self._snapshot = snapshot
        self._population = None
        logger.info(
            "Catalog cache populated with %d items and %d collections",
            len(items),
            len(collections),
        )
        return snapshot

    async def invalidate(self) -> None:
        """Drop the cached catalogue so the next read repopulates it.

        If a population is running, this waits for it to finish (its
        outcome is left to the callers awaiting it) and then clears the
        result. Readers already holding the previous snapshot finish with
        that consistent view.
        """
        task = self._population
        if task is not None:
            logger.info("Invalidation waiting for catalog population in progress")
            await asyncio.wait({task})
        self._snapshot = None
        logger.info("Catalog cache invalidated")

    async def refresh(self) -> None:
        """Invalidate and immediately repopulate the cache."""
        logger.info("Refreshing catalog cache")
        await self.invalidate()
        await self.ensure_populated()

    # ------------------------------------------------------------------
    # Point and membership queries

    async def get_item_by_id(self, item_id: int) -> Optional[Item]:
        snapshot = await self._current_snapshot()
        item = snapshot.items.get(item_id)
        if item is None:
            logger.debug("No item found for id %s", item_id)
        return item

    async def get_item_image_url(self, item_id: int) -> Optional[str]:
        item = await self.get_item_by_id(item_id)
        return item.image_url if item is not None else None

    async def get_collection_caption(self, collection_id: int) -> Optional[str]:
        """Return the caption of a collection, or ``None`` if it is unknown."""
        snapshot = await self._current_snapshot()
        collection = snapshot.collections.get(collection_id)
        return collection.caption if collection is not None else None

    async def get_collection_id_by_caption(self, caption: str) -> Optional[int]:
        """Resolve a caption to its collection id.

        Matching is exact and case-sensitive; captions come from public
        URLs and must not resolve to a near miss.
        """
        snapshot = await self._current_snapshot()
        for collection in snapshot.collections.values():
            if collection.caption == caption:
                return collection.collection_id
        return None

    async def find_item_id_by_page(self, collection_id: int, page_index: int) -> Optional[int]:
        """Resolve the position carried by a public item address.

        ``page_index`` is zero-based, as produced by ``urls.item_page_slug``;
        it is matched against the 1-based ``page_within_collection``.
        """
        snapshot = await self._current_snapshot()
        page_within_collection = page_index + 1
        for item in snapshot.items_by_collection.get(collection_id, ()):
            if item.page_within_collection == page_within_collection:
                return item.item_id
        return None

    async def list_all_collection_captions(self) -> List[CollectionCaption]:
        snapshot = await self._current_snapshot()
        return [
            CollectionCaption(collection_id=c.collection_id, caption=c.caption)
            for c in snapshot.collections.values()
        ]

    async def list_every_item(self) -> List[Item]:
        """Return every cached item, highest global ordinal first."""
        snapshot = await self._current_snapshot()
        return list(snapshot.items_by_ordinal)

    # ------------------------------------------------------------------
    # Paginated listings

    def _page_size(self, page_size: Optional[int]) -> int:
        return self.default_page_size if page_size is None else page_size

    async def list_all_items(self, page: int = 1, page_size: Optional[int] = None) -> ItemPage:
        """List the whole catalogue, most recently added items first."""
        snapshot = await self._current_snapshot()
        sliced = paginate(snapshot.items_by_ordinal, page, self._page_size(page_size))
        if not sliced.entries:
            logger.debug("No items on page %d of the catalogue", sliced.page)
        return ItemPage(
            items=sliced.entries,
            total_items=sliced.total_items,
            total_pages=sliced.total_pages,
            page=sliced.page,
            page_size=sliced.page_size,
        )

    async def list_items_by_collection(
        self, collection_id: int, page: int = 1, page_size: Optional[int] = None
    ) -> ItemPage:
        """List the items of one collection, last position first.

        ``collection_caption`` falls back to ``"Album <id>"`` when the
        collection itself is not in the catalogue.
        """
        snapshot = await self._current_snapshot()
        collection = snapshot.collections.get(collection_id)
        caption = collection.caption if collection is not None else f"Album {collection_id}"
        members = snapshot.items_by_collection.get(collection_id, ())
        if not members:
            logger.debug("No items found for collection %s", collection_id)
        sliced = paginate(members, page, self._page_size(page_size))
        return ItemPage(
            items=sliced.entries,
            total_items=sliced.total_items,
            total_pages=sliced.total_pages,
            page=sliced.page,
            page_size=sliced.page_size,
            collection_caption=caption,
        )

    async def list_filtered_items(
        self,
        item_filter: Optional[ItemFilter] = None,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> ItemPage:
        """List items matching size, colour and text criteria.

        Results are ordered by descending ``item_id``, unlike the other
        listings which order by position. ``search_text`` is lowercased but
        otherwise matched as given, surrounding whitespace included.
        """
        snapshot = await self._current_snapshot()
        criteria = item_filter or ItemFilter()
        needle = (criteria.search_text or "").lower()

        matches: List[Item] = []
        for item in snapshot.items.values():
            if not _in_range(item.width, criteria.width_from, criteria.width_to):
                continue
            if not _in_range(item.height, criteria.height_from, criteria.height_to):
                continue
            if not _in_range(item.color_count, criteria.colors_from, criteria.colors_to):
                continue
            if needle:
                collection = snapshot.collections.get(item.collection_id)
                collection_caption = collection.caption.lower() if collection else ""
                if needle not in item.caption.lower() and needle not in collection_caption:
                    continue
            matches.append(item)

        matches.sort(key=lambda i: i.item_id, reverse=True)
        sliced = paginate(matches, page, self._page_size(page_size))
        if not matches:
            logger.debug("No items match filter %s", criteria.model_dump(exclude_none=True))
        return ItemPage(
            items=sliced.entries,
            total_items=sliced.total_items,
            total_pages=sliced.total_pages,
            page=sliced.page,
            page_size=sliced.page_size,
        )

    async def list_collections(
        self, page: int = 1, page_size: Optional[int] = None
    ) -> CollectionPage:
        """List collections in ascending id order."""
        snapshot = await self._current_snapshot()
        ordered = sorted(snapshot.collections.values(), key=lambda c: c.collection_id)
        sliced = paginate(ordered, page, self._page_size(page_size))
        return CollectionPage(
            collections=sliced.entries,
            total_items=sliced.total_items,
            total_pages=sliced.total_pages,
            page=sliced.page,
            page_size=sliced.page_size,
        )
