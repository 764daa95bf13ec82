# -*- coding: utf-8 -*-
"""Transport-agnostic core: command model, routing, dispatch, interpolation.

Nothing in this package imports FastAPI or rich; both front-ends build on it.
"""

from chaincmd.core.commands import ApiMeta, ArgumentSpec, CommandNode, ParamSpec
from chaincmd.core.context import ChainFactory, ContextResolver, ExecutionContext
from chaincmd.core.dispatcher import Dispatcher, resolve_command
from chaincmd.core.errors import (
    ChaincmdError,
    CommandError,
    InterpolationError,
    MissingArgumentError,
    RouteCompilationError,
    UnresolvedCommandError,
)
from chaincmd.core.interpolation import BlockTimestampInterpolator
from chaincmd.core.request_adapter import adapt
from chaincmd.core.routes import Route, compile_routes

__all__ = [
    "ApiMeta",
    "ArgumentSpec",
    "BlockTimestampInterpolator",
    "ChainFactory",
    "ChaincmdError",
    "CommandError",
    "CommandNode",
    "ContextResolver",
    "Dispatcher",
    "ExecutionContext",
    "InterpolationError",
    "MissingArgumentError",
    "ParamSpec",
    "Route",
    "RouteCompilationError",
    "UnresolvedCommandError",
    "adapt",
    "compile_routes",
    "resolve_command",
]
