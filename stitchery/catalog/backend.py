"""
Backing-store access for the catalog cache.

The catalogue lives in a single DynamoDB table in which designs and
albums share a composite key and are told apart by the ``EntityType``
attribute. The cache only ever needs one operation from the store: a
paginated scan of one entity type. ``CatalogBackend`` describes that
operation so tests (and alternative stores) can stand in for DynamoDB.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, NamedTuple, Optional, Protocol

import boto3
from boto3.dynamodb.conditions import Attr

logger = logging.getLogger(__name__)

ITEM_ENTITY = "DESIGN"
COLLECTION_ENTITY = "ALBUM"

# Opaque continuation token (DynamoDB's LastEvaluatedKey).
ContinuationToken = Dict[str, Any]


class ScanPage(NamedTuple):
    """One page of a scan: the raw records and the token for the next page."""

    records: List[Dict[str, Any]]
    next_token: Optional[ContinuationToken] = None


class CatalogBackend(Protocol):
    """Paginated scan over one entity type of the catalogue table."""

    async def scan(
        self, entity_type: str, continuation_token: Optional[ContinuationToken] = None
    ) -> ScanPage:
        """Return one page of records of ``entity_type``.

        Callers keep calling with the returned ``next_token`` until it is
        ``None`` or empty.
        """
        ...


class DynamoDBBackend:
    """``CatalogBackend`` implemented with boto3's DynamoDB resource API.

    boto3 is blocking, so each scan request runs in a worker thread and
    the event loop stays free to serve other requests meanwhile.
    """

    def __init__(
        self,
        table_name: str,
        region_name: Optional[str] = None,
        page_limit: Optional[int] = None,
        table: Any = None,
    ) -> None:
        self.table_name = table_name
        self.page_limit = page_limit
        if table is None:
            table = boto3.resource("dynamodb", region_name=region_name).Table(table_name)
        self._table = table

    def _scan_sync(
        self, entity_type: str, continuation_token: Optional[ContinuationToken]
    ) -> ScanPage:
        params: Dict[str, Any] = {
            "FilterExpression": Attr("EntityType").eq(entity_type),
        }
        if continuation_token:
            params["ExclusiveStartKey"] = continuation_token
        if self.page_limit:
            params["Limit"] = self.page_limit
        response = self._table.scan(**params)
        records = response.get("Items") or []
        logger.debug(
            "Scanned %d %s records from %s", len(records), entity_type, self.table_name
        )
        return ScanPage(records=records, next_token=response.get("LastEvaluatedKey") or None)

    async def scan(
        self, entity_type: str, continuation_token: Optional[ContinuationToken] = None
    ) -> ScanPage:
        return await asyncio.to_thread(self._scan_sync, entity_type, continuation_token)
