# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import List, Optional, Sequence

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from chaincmd import __version__
from chaincmd.core.aliases import AliasResolver
from chaincmd.core.commands import CommandNode
from chaincmd.core.context import ContextResolver, ExecutionContext
from chaincmd.core.dispatcher import Dispatcher
from chaincmd.core.errors import ChaincmdError, UnknownPlatformError
from chaincmd.core.routes import compile_routes

from .api import ErrorBody, RouteInfo, build_router, error_response, route_infos
from .settings import ApiSettings

logger = logging.getLogger(__name__)


def create_app(
    commands: Sequence[CommandNode],
    default_context: ExecutionContext,
    *,
    api_prefix: str = "/api",
    root_path: str = "",
    cors_allow_origins: Optional[Sequence[str]] = None,
    gzip_minimum_size: int = 800,
    resolver: Optional[ContextResolver] = None,
    dispatcher: Optional[Dispatcher] = None,
    aliases: Optional[AliasResolver] = None,
) -> FastAPI:
    """FastAPI app factory.

    Routes are compiled once; a collision raises RouteCompilationError before the app
    exists. `default_context` is shared read-only by every request.
    """

    settings = ApiSettings(
        api_prefix=ApiSettings.normalize_prefix(api_prefix),
        root_path=ApiSettings.normalize_root_path(root_path),
        cors_allow_origins=list(cors_allow_origins) if cors_allow_origins else None,
        gzip_minimum_size=int(gzip_minimum_size or 0),
    )
    routes = compile_routes(commands, resolver=aliases)
    logger.info("Compiled %d command routes under %s", len(routes), settings.api_prefix or "/")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await default_context.aclose()

    app = FastAPI(
        title="chaincmd API",
        version=__version__,
        root_path=settings.root_path,
        docs_url="/docs",
        redoc_url=None,
        lifespan=lifespan,
    )

    # state
    app.state.settings = settings
    app.state.context = default_context
    app.state.resolver = resolver or ContextResolver(default_context.factory or _no_factory)
    app.state.dispatcher = dispatcher or Dispatcher(commands, resolver=aliases)
    app.state.routes = routes

    # middleware
    if settings.gzip_minimum_size > 0:
        app.add_middleware(GZipMiddleware, minimum_size=settings.gzip_minimum_size)

    if settings.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allow_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # errors
    @app.exception_handler(ChaincmdError)
    async def _chaincmd_error(request: Request, exc: ChaincmdError):
        return error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        body = ErrorBody(error=str(exc.detail), command=None).model_dump()
        return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))

    # routes
    app.include_router(build_router(routes, prefix=settings.api_prefix))

    @app.get("/healthz")
    def healthz():
        return {"ok": True, "platform": default_context.platform}

    @app.get("/routes", response_model=List[RouteInfo])
    def list_routes():
        return route_infos(routes, prefix=settings.api_prefix)

    return app


def _no_factory(platform: str):
    raise UnknownPlatformError(f"No chain factory configured; cannot switch to {platform!r}")
