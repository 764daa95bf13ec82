# -*- coding: utf-8 -*-
"""Execution context: which chain a command runs against.

There is no process-wide "current chain". The CLI resolves one context per invocation;
the HTTP app keeps a read-only default and builds a throwaway context for any request
that names another platform (`?chain=polygon`).
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from chaincmd.core.chain_client import ChainClient
from chaincmd.core.config import AppConfig
from chaincmd.core.errors import UnknownPlatformError

logger = logging.getLogger(__name__)

ENV_CLI = "cli"
ENV_API = "api"


@dataclass(frozen=True)
class ExecutionContext:
    platform: str
    client: Any = field(compare=False)
    config: AppConfig = field(default_factory=AppConfig, compare=False)
    env: str = ENV_CLI
    factory: Optional[Callable[[str], Any]] = field(default=None, compare=False, repr=False)

    @property
    def is_api(self) -> bool:
        return self.env == ENV_API

    def for_api(self) -> "ExecutionContext":
        if self.is_api:
            return self
        return dataclasses.replace(self, env=ENV_API)

    async def aclose(self) -> None:
        close = getattr(self.client, "aclose", None)
        if close is not None:
            await close()


class ChainFactory:
    """platform name -> fresh client, endpoints from config."""

    def __init__(self, config: AppConfig, *, client_cls: Callable[..., Any] = ChainClient):
        self.config = config
        self.client_cls = client_cls

    def __call__(self, platform: str) -> Any:
        return self.create(platform)

    def create(self, platform: str) -> Any:
        key = str(platform or "").strip().lower()
        url = self.config.rpc_url(key)
        if not url:
            known = ", ".join(sorted(self.config.chains)) or "-"
            raise UnknownPlatformError(f"Unknown platform {platform!r} (configured: {known})")
        logger.debug("Creating client for %s at %s", key, url)
        return self.client_cls(key, url)

    def context(self, platform: Optional[str] = None, *, env: str = ENV_CLI) -> ExecutionContext:
        key = str(platform or self.config.platform).strip().lower()
        return ExecutionContext(platform=key, client=self.create(key), config=self.config, env=env, factory=self)


class ContextResolver:
    def __init__(self, factory: Callable[[str], Any]):
        self.factory = factory

    def resolve(self, requested: Optional[str], default: ExecutionContext) -> ExecutionContext:
        """Same instance when nothing (or the default platform) is requested."""
        key = str(requested or "").strip().lower()
        if not key or key == default.platform:
            return default
        return ExecutionContext(
            platform=key,
            client=self.factory(key),
            config=default.config,
            env=default.env,
            factory=self.factory,
        )
