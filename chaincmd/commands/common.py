# -*- coding: utf-8 -*-
"""Helpers shared by command handlers."""

from __future__ import annotations

from contextlib import asynccontextmanager
from functools import lru_cache
from pathlib import Path
from typing import AsyncIterator, Optional

from chaincmd.core.commands import ParamSpec
from chaincmd.core.context import ChainFactory, ContextResolver, ExecutionContext
from chaincmd.core.packages import PackageRegistry

CHAIN = ParamSpec.parse("--chain", description="Platform to run against (eth, polygon, hardhat, ...)")
OUTPUT = ParamSpec.parse("--output, -o", description="Write the result to this file")


@lru_cache(maxsize=8)
def _registry(path: Path) -> PackageRegistry:
    return PackageRegistry(path)


def registry_for(context: ExecutionContext) -> PackageRegistry:
    return _registry(Path(context.config.registry_path))


@asynccontextmanager
async def on_platform(context: ExecutionContext, platform: Optional[str]) -> AsyncIterator[ExecutionContext]:
    """Context bound to `platform`; a derived one is closed on exit, the caller's never."""
    factory = context.factory or ChainFactory(context.config)
    ctx = ContextResolver(factory).resolve(platform, context)
    try:
        yield ctx
    finally:
        if ctx is not context:
            await ctx.aclose()
