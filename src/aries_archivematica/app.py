"""Aries Archivematica: FastAPI application.

Resolves an AIP identifier (UUID or name) to its canonical UUID, name,
administrative URL and master file, using the Archivematica dashboard
and Storage Service as read-only backing sources.
"""

from __future__ import annotations

import logging
import time
from contextlib import ExitStack, asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from aries_archivematica import __version__
from aries_archivematica.config import API, ServiceConfig, load_config
from aries_archivematica.errors import (
    AmbiguousError,
    NotFoundError,
    ResolutionError,
    SourceError,
)
from aries_archivematica.lookup import LookupService
from aries_archivematica.routes import aries, meta
from aries_archivematica.sources import (
    ApiLocationResolver,
    ApiMetadataResolver,
    DatabaseLocationResolver,
    DatabaseMetadataResolver,
    LocationResolver,
    MetadataResolver,
    create_http_client,
    create_source_engine,
)

logger = logging.getLogger("aries_archivematica")
audit_logger = logging.getLogger("aries_archivematica.audit")


def build_lookup_service(config: ServiceConfig, stack: ExitStack) -> LookupService:
    """Wire resolvers for the configured sources.

    Engines and the HTTP client are registered on ``stack`` so they are
    released when it closes.
    """
    client = None
    if API in (config.metadata_source, config.location_source):
        client = create_http_client(config.request_timeout)
        stack.callback(client.close)

    metadata: MetadataResolver
    if config.metadata_source == API:
        logger.info("Metadata source: API %s", config.application_api_url_template)
        metadata = ApiMetadataResolver(
            client,
            config.application_api_url_template,
            config.application_api_user,
            config.application_api_key,
        )
    else:
        logger.info("Metadata source: application database")
        engine = create_source_engine(config.application_db_url)
        stack.callback(engine.dispose)
        metadata = DatabaseMetadataResolver(engine)

    location: LocationResolver
    if config.location_source == API:
        logger.info("Location source: API %s", config.storage_api_url_template)
        location = ApiLocationResolver(
            client,
            config.storage_api_url_template,
            config.storage_api_user,
            config.storage_api_key,
        )
    else:
        logger.info("Location source: storage service database")
        engine = create_source_engine(config.storage_db_url)
        stack.callback(engine.dispose)
        location = DatabaseLocationResolver(engine)

    return LookupService(metadata, location, config.admin_url_template)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: open backing sources. Shutdown: release them."""
    if app.state.service is not None:
        yield
        return
    config: ServiceConfig = app.state.config
    with ExitStack() as stack:
        app.state.service = build_lookup_service(config, stack)
        logger.info("Aries Archivematica %s ready", __version__)
        yield
    app.state.service = None
    logger.info("Aries Archivematica shut down")


def create_app(
    config: ServiceConfig | None = None,
    service: LookupService | None = None,
) -> FastAPI:
    """Application factory.

    Pass ``service`` to use prebuilt resolvers instead of the configured ones;
    configuration is then only loaded when given.
    """
    if config is None and service is None:
        config = load_config()

    app = FastAPI(
        title="Aries Archivematica",
        description="Identifier resolution for Archivematica archival packages",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "HEAD", "POST"],
    )

    # ── Exception handlers ────────────────────────────────────

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(AmbiguousError)
    async def ambiguous_handler(request: Request, exc: AmbiguousError):
        logger.warning("Ambiguous %s lookup: %s", exc.stage, exc)
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(SourceError)
    async def source_handler(request: Request, exc: SourceError):
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    @app.exception_handler(ResolutionError)
    async def resolution_handler(request: Request, exc: ResolutionError):
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    # ── Audit middleware ──────────────────────────────────────

    @app.middleware("http")
    async def audit_log(request: Request, call_next):
        start = time.monotonic()
        response = await call_next(request)
        elapsed = time.monotonic() - start
        audit_logger.info(
            "%s %s %d %.3fs",
            request.method,
            request.url.path,
            response.status_code,
            elapsed,
        )
        return response

    # ── Routers ───────────────────────────────────────────────

    app.include_router(meta.router)
    app.include_router(aries.router)

    return app
