# -*- coding: utf-8 -*-
"""chaincmd: one command tree for EVM chains.

- Terminal: `chaincmd <command> [args] [--flags]` with rich output
- HTTP: FastAPI routes compiled from the same tree (`chaincmd server start`)
"""

__all__ = ["__version__"]
__version__ = "0.3.0"
