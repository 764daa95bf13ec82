# -*- coding: utf-8 -*-
"""server start: serve the command tree over HTTP (CLI only)."""

from __future__ import annotations

import logging

from chaincmd.core.commands import CommandNode, ParamSpec

logger = logging.getLogger(__name__)


async def _start(args, params, context, node):
    import uvicorn

    from chaincmd.apps.api.app import create_app
    from chaincmd.commands import get_commands

    cfg = context.config
    host = str(params.get("host") or cfg.host)
    port = int(params.get("port") or cfg.port)
    app = create_app(
        get_commands(),
        context,
        api_prefix=cfg.api_prefix,
        root_path=cfg.root_path,
        cors_allow_origins=list(cfg.cors_allow_origins) or None,
    )
    rp = (cfg.root_path or "").rstrip("/")
    logger.info("Serving %s on http://%s:%d%s%s", context.platform, host, port, rp, cfg.api_prefix)

    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=host,
            port=port,
            log_level=str(params.get("log-level") or "info"),
            proxy_headers=True,
            forwarded_allow_ips="*",
        )
    )
    await server.serve()
    return None


CServer = CommandNode(
    "server",
    description="HTTP API for the command tree",
    subcommands=(
        CommandNode(
            "start",
            description="Start the API server (GET/POST /api/<command>/...)",
            params=(
                ParamSpec.parse("--host", description="Bind address (default from conf/settings.ini)"),
                ParamSpec.parse("--port", type="number", description="Port (default from conf/settings.ini)"),
                ParamSpec.parse("--log-level", description="uvicorn log level"),
            ),
            handler=_start,
        ),
    ),
)
