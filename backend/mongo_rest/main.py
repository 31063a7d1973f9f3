"""
mongo-rest - FastAPI Application

A generic REST interface over a MongoDB-compatible document store.
"""
import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from mongo_rest import __version__
from mongo_rest.config import Settings, get_settings
from mongo_rest.core.errors import register_exception_handlers
from mongo_rest.core.logging import bind_context, clear_context, get_logger, setup_logging
from mongo_rest.database.connections import ClientFactory, ConnectionResolver, HandleCache
from mongo_rest.dependencies.gates import build_gate_pipeline
from mongo_rest.dependencies.tools import Tools
from mongo_rest.routers import auth, documents
from mongo_rest.services.auth_service import AuthService
from mongo_rest.services.output import OutputFormatter

logger = get_logger("mongo_rest")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Create auth store indexes (when auth is configured)

    Shutdown:
    - Close all store connections
    """
    tools: Tools = app.state.tools
    logger.info(
        "startup",
        database=tools.settings.db.database,
        endpoint_root=tools.settings.endpoint_root,
        url_prefix=tools.settings.url_prefix,
        auth=app.state.auth_service is not None,
    )

    if app.state.auth_service is not None:
        try:
            await app.state.auth_service.ensure_indexes()
        except PyMongoError as e:
            logger.warning("auth_index_warning", message=str(e))

    yield

    logger.info("shutdown")
    tools.resolver.close()


def create_app(
    settings: Optional[Settings] = None,
    client_factory: Optional[ClientFactory] = None,
) -> FastAPI:
    """
    Build the application for a settings instance.

    Args:
        settings: Settings to use; loaded from the config file when omitted
        client_factory: Store client constructor, AsyncIOMotorClient by default
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.json_logs)

    resolver = ConnectionResolver(settings.db, client_factory=client_factory, cache=HandleCache())
    formatter = OutputFormatter(settings.human_readable_output, settings.collection_output_type)
    tools = Tools(settings=settings, resolver=resolver, formatter=formatter, logger=logger)

    auth_service = AuthService.from_resolver(resolver, settings.auth) if settings.auth else None

    app = FastAPI(
        title="mongo-rest",
        description="REST interface over a MongoDB-compatible document store.",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.tools = tools
    app.state.auth_service = auth_service
    app.state.gates = build_gate_pipeline(settings, auth_service, logger)

    if settings.access_control.allow_origin:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[settings.access_control.allow_origin],
            allow_methods=settings.access_control.methods,
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        clear_context()
        bind_context(request_id=uuid.uuid4().hex[:12])
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response

    register_exception_handlers(app, settings.access_denied_status)

    # Login/logout first so they win over /{collection} in database mode
    if auth_service is not None:
        app.include_router(auth.build_router(settings))
    app.include_router(documents.build_router(settings))

    return app
