"""
Catalog package for the cross-stitch pattern service.

The heart of the package is ``CatalogCache``, an in-memory mirror of the
designs and albums held in the backing DynamoDB table. It is populated
lazily with a single full scan, serves lookups, filtering and pagination
entirely from memory, and is rebuilt wholesale when invalidated. The
router module exposes those reads as a small JSON API.
"""

from .backend import CatalogBackend, DynamoDBBackend, ScanPage  # noqa: F401
from .cache import CacheState, CatalogCache  # noqa: F401
from .router import router as catalog_router  # noqa: F401
