"""
Shared fixtures for the catalogue tests.

``FakeBackend`` stands in for the DynamoDB table: it serves records in
small pages with continuation tokens, counts scans, can fail chosen
calls and can hold every scan at a gate so tests can pile up concurrent
callers while a population is in flight.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any, Dict, List, Optional, Set

import pytest

from stitchery.catalog.backend import COLLECTION_ENTITY, ITEM_ENTITY, ScanPage


def design_record(
    item_id: Any,
    collection_id: Any,
    global_ordinal: int,
    page: int,
    caption: Optional[str] = None,
    width: int = 100,
    height: int = 100,
    colors: int = 10,
) -> Dict[str, Any]:
    """Build a design row the way boto3's resource API returns it."""
    return {
        "ID": f"ALB#{int(collection_id):04d}" if collection_id else "ALB#0000",
        "EntityType": "DESIGN",
        "DesignID": Decimal(item_id) if item_id is not None else None,
        "AlbumID": Decimal(collection_id),
        "Caption": caption if caption is not None else f"Design {item_id}",
        "Description": "",
        "Width": Decimal(width),
        "Height": Decimal(height),
        "NColors": Decimal(colors),
        "NDownloaded": Decimal(0),
        "NPage": f"{page:05d}",
        "NGlobalPage": Decimal(global_ordinal),
    }


def album_record(collection_id: int, caption: str) -> Dict[str, Any]:
    return {
        "ID": f"ALB#{collection_id:04d}",
        "NPage": "00000",
        "EntityType": "ALBUM",
        "AlbumID": Decimal(collection_id),
        "Caption": caption,
    }


class FakeBackend:
    """In-memory ``CatalogBackend`` with call accounting."""

    def __init__(
        self,
        designs: Optional[List[Dict[str, Any]]] = None,
        albums: Optional[List[Dict[str, Any]]] = None,
        page_size: int = 2,
    ) -> None:
        self.records: Dict[str, List[Dict[str, Any]]] = {
            ITEM_ENTITY: list(designs or []),
            COLLECTION_ENTITY: list(albums or []),
        }
        self.page_size = page_size
        self.calls: List[tuple] = []
        self.fail_calls: Set[int] = set()
        self.gate: Optional[asyncio.Event] = None

    def full_scans(self, entity_type: str = ITEM_ENTITY) -> int:
        """Number of scan sequences started for ``entity_type``."""
        return sum(1 for kind, token in self.calls if kind == entity_type and token is None)

    def remove_design(self, item_id: int) -> None:
        self.records[ITEM_ENTITY] = [
            r for r in self.records[ITEM_ENTITY] if int(r["DesignID"]) != item_id
        ]

    async def scan(self, entity_type: str, continuation_token: Optional[Dict[str, Any]] = None) -> ScanPage:
        self.calls.append((entity_type, continuation_token))
        call_number = len(self.calls)
        if self.gate is not None:
            await self.gate.wait()
        if call_number in self.fail_calls:
            raise ConnectionError("backing store unreachable")
        rows = self.records[entity_type]
        start = continuation_token["offset"] if continuation_token else 0
        end = start + self.page_size
        next_token = {"offset": end} if end < len(rows) else None
        return ScanPage(records=[dict(r) for r in rows[start:end]], next_token=next_token)


@pytest.fixture
def scenario_backend() -> FakeBackend:
    """Three designs across two albums: Animals (10) and Florals (20)."""
    return FakeBackend(
        designs=[
            design_record(1, 10, global_ordinal=1, page=1, caption="Cat", width=50, height=60, colors=5),
            design_record(2, 10, global_ordinal=2, page=2, caption="Dog", width=80, height=80, colors=12),
            design_record(3, 20, global_ordinal=3, page=1, caption="Red Rose", width=120, height=90, colors=30),
        ],
        albums=[album_record(10, "Animals"), album_record(20, "Florals")],
    )


def make_catalog(count: int, per_collection: int = 4) -> FakeBackend:
    """Backend with ``count`` designs spread over albums of ``per_collection``."""
    designs = []
    albums = {}
    for n in range(1, count + 1):
        collection_id = (n - 1) // per_collection + 1
        page = (n - 1) % per_collection + 1
        designs.append(
            design_record(n, collection_id, global_ordinal=n, page=page, width=10 * n, height=5 * n, colors=n % 7)
        )
        albums[collection_id] = album_record(collection_id, f"Album {collection_id}")
    return FakeBackend(designs=designs, albums=list(albums.values()), page_size=3)
