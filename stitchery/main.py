# stitchery/main.py
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from . import __version__
from .catalog import CatalogBackend, CatalogCache, DynamoDBBackend, catalog_router
from .config import Settings
from .exceptions import PopulationError

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None, backend: Optional[CatalogBackend] = None
) -> FastAPI:
    """Build the FastAPI application.

    ``backend`` replaces the DynamoDB table, which is how tests run the
    service without AWS.
    """
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        store = backend
        if store is None:
            settings.validate()
            store = DynamoDBBackend(
                settings.table_name,
                region_name=settings.region_name,
                page_limit=settings.scan_page_limit,
            )
        cache = CatalogCache(
            store,
            default_page_size=settings.default_page_size,
            cdn_base_url=settings.cdn_base_url,
        )
        app.state.catalog_cache = cache
        if settings.preload:
            # A failed preload is retried by the first request.
            try:
                await cache.ensure_populated()
            except PopulationError as exc:
                logger.warning("Catalogue preload failed: %s", exc)
        logger.info("Catalogue service started")
        yield
        logger.info("Catalogue service stopped")

    app = FastAPI(
        title="Stitchery catalogue",
        description=(
            "Read API over the cross-stitch pattern catalogue, served from "
            "an in-memory mirror of the DynamoDB table."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    # Basic health check, also reports whether the catalogue is loaded
    @app.get("/")
    def health_check():
        cache = getattr(app.state, "catalog_cache", None)
        state = cache.state.value if cache is not None else "unavailable"
        return {"status": "ok", "cache": state}

    app.include_router(catalog_router)
    return app


app = create_app()
