"""FastAPI application factory for the keygate service."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from keygate.api.router_companies import router as companies_router
from keygate.api.router_users import router as users_router
from keygate.core.log_config import configure_logging
from keygate.core.settings import DatabaseSettings, GateSettings
from keygate.db.engine import build_engine, build_session_factory
from keygate.entry.errors import EntryError
from keygate.entry.routes_entry import router as entry_router

logger = logging.getLogger(__name__)

HTTP_BAD_REQUEST = 400


async def _entry_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, EntryError):
        raise exc
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


async def _http_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, StarletteHTTPException):
        raise exc
    return JSONResponse(
        {"error": exc.detail},
        status_code=exc.status_code,
        headers=exc.headers,
    )


async def _validation_error_handler(
    _request: Request, exc: Exception
) -> JSONResponse:
    if not isinstance(exc, RequestValidationError):
        raise exc
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        message = str(errors[0].get("msg", message)).removeprefix("Value error, ")
    return JSONResponse({"error": message}, status_code=HTTP_BAD_REQUEST)


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    settings = GateSettings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        engine = build_engine(DatabaseSettings())
        app.state.session_factory = build_session_factory(engine)
        logger.info("Database engine started")
        try:
            yield
        finally:
            await engine.dispose()
            logger.info("Database engine disposed")

    app = FastAPI(
        title="keygate",
        version="0.1.0",
        lifespan=lifespan,
    )

    origins = settings.get_cors_origin_list()
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
            allow_headers=["Authorization", "Content-Type"],
        )

    app.add_exception_handler(EntryError, _entry_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    app.include_router(entry_router)
    app.include_router(companies_router)
    app.include_router(users_router)

    return app
