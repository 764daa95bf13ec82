# -*- coding: utf-8 -*-
"""HTTP surface for the command tree.

- Backend: FastAPI (ASGI), served by uvicorn (`chaincmd server start`)
- Routes: compiled from `chaincmd.commands.get_commands()` at startup
- Responses: the raw JSON value of the command result
"""

from chaincmd.apps.api.app import create_app

__all__ = ["create_app"]
