# -*- coding: utf-8 -*-
"""Compiled command routes -> FastAPI router.

Every route shares one endpoint shape:
    request -> adapt() -> ContextResolver.resolve(?chain) -> Dispatcher.invoke_api()
            -> raw JSON result
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from chaincmd.core.context import ContextResolver, ExecutionContext
from chaincmd.core.dispatcher import Dispatcher
from chaincmd.core.errors import ChaincmdError, CommandError, RequestError, UnresolvedCommandError
from chaincmd.core.request_adapter import adapt
from chaincmd.core.routes import Route
from chaincmd.core.serialize import JSON_MEDIA_TYPE

logger = logging.getLogger(__name__)


class ErrorBody(BaseModel):
    error: str
    command: Optional[str] = None


class RouteInfo(BaseModel):
    method: str
    path: str
    command: str
    description: str = ""


async def _read_body(request: Request) -> Optional[Any]:
    raw = await request.body()
    if not raw or not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError:
        raise RequestError("Request body is not valid JSON")


def _endpoint(route: Route) -> Callable[[Request], Any]:
    async def endpoint(request: Request) -> Response:
        state = request.app.state
        default: ExecutionContext = state.context
        resolver: ContextResolver = state.resolver
        dispatcher: Dispatcher = state.dispatcher

        body = await _read_body(request)
        args, params = adapt(request.path_params, body, route.node, query=dict(request.query_params))

        ctx = resolver.resolve(params.get("chain"), default)
        try:
            result = await dispatcher.invoke_api(route.node, args, params, ctx, route.command_path)
        finally:
            if ctx is not default:
                await ctx.aclose()
        return Response(content=dispatcher.render_json(result), media_type=JSON_MEDIA_TYPE)

    endpoint.__name__ = "cmd_" + "_".join(route.command_path).replace("-", "_")
    return endpoint


def build_router(routes: Sequence[Route], *, prefix: str = "") -> APIRouter:
    router = APIRouter(prefix=prefix)
    for route in routes:
        router.add_api_route(
            route.fastapi_path(),
            _endpoint(route),
            methods=[route.method.upper()],
            summary=route.node.description or None,
        )
    return router


def route_infos(routes: Sequence[Route], *, prefix: str = "") -> List[RouteInfo]:
    return [
        RouteInfo(
            method=r.method.upper(),
            path=f"{prefix}{r.path}",
            command=" ".join(r.command_path),
            description=r.node.description,
        )
        for r in routes
    ]


def error_response(exc: ChaincmdError) -> JSONResponse:
    command: Optional[str] = None
    message = str(exc)
    if isinstance(exc, CommandError):
        command, message = exc.command, exc.message
    elif isinstance(exc, UnresolvedCommandError) and exc.path:
        command = " ".join(exc.path)

    status = int(getattr(exc, "status", 500))
    if status >= 500:
        logger.error("%s failed: %s", command or "request", message, exc_info=exc.__cause__ or exc)
    body: Dict[str, Any] = ErrorBody(error=message, command=command).model_dump()
    return JSONResponse(status_code=status, content=body)
