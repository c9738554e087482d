"""
metainspect HTTP service: inspection control and state polling.

Configuration (environment):
- METAINSPECT_DB_PATH: preferences database (default ./metainspect.db)
- METAINSPECT_ASSET_CATALOG: optional JSON library export for asset lookups
- METAINSPECT_CONCURRENT_ENRICHMENT: "1" to issue enrichment calls concurrently

Run with: uvicorn metainspect.main:create_app --factory
"""

import logging
import os
from typing import Optional

from fastapi import FastAPI

from . import __version__
from .extractors import (
    DefaultPreviewGenerator,
    FilesystemExtractor,
    JsonAssetCatalog,
    default_extractors,
)
from .inspection.engine import InspectionEngine
from .inspection.settings import InspectionSettings
from .persistence.preferences import PreferencesStore
from .routes import inspection

logger = logging.getLogger(__name__)

ENV_DB_PATH = "METAINSPECT_DB_PATH"
ENV_ASSET_CATALOG = "METAINSPECT_ASSET_CATALOG"
ENV_CONCURRENT_ENRICHMENT = "METAINSPECT_CONCURRENT_ENRICHMENT"


def build_engine(
    preferences_store: PreferencesStore,
    catalog_path: Optional[str] = None,
    concurrent_enrichment: bool = False,
) -> InspectionEngine:
    """Wire the default extractor capability set with persisted preferences."""
    preferences = preferences_store.load()
    settings = InspectionSettings(
        include_raw_metadata=preferences.include_raw_metadata,
        show_only_essential=preferences.show_only_essential,
        concurrent_enrichment=concurrent_enrichment,
    )
    catalog = JsonAssetCatalog(catalog_path) if catalog_path else None
    return InspectionEngine(
        baseline=FilesystemExtractor(),
        enrichers=default_extractors(catalog),
        preview=DefaultPreviewGenerator(),
        settings=settings,
    )


def create_app(
    engine: Optional[InspectionEngine] = None,
    preferences_store: Optional[PreferencesStore] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        engine: Pre-built engine (tests inject fakes); built from env when None
        preferences_store: Preferences store; built from env when None
    """
    app = FastAPI(title="metainspect", version=__version__)

    if preferences_store is None:
        preferences_store = PreferencesStore(
            db_path=os.environ.get(ENV_DB_PATH, "./metainspect.db")
        )
    if engine is None:
        engine = build_engine(
            preferences_store,
            catalog_path=os.environ.get(ENV_ASSET_CATALOG),
            concurrent_enrichment=os.environ.get(ENV_CONCURRENT_ENRICHMENT) == "1",
        )

    app.state.preferences_store = preferences_store
    app.state.inspection_engine = engine
    app.include_router(inspection.router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": __version__}

    return app


def run_server(host: str = "127.0.0.1", port: int = 8085) -> None:
    """
    Run the HTTP service.

    Args:
        host: Host to bind to
        port: Port to listen on
    """
    import uvicorn

    app = create_app()

    print("Starting metainspect API")
    print(f"Binding to: {host}:{port}")

    uvicorn.run(app, host=host, port=port)
