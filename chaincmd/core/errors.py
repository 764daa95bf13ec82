# -*- coding: utf-8 -*-
"""Error taxonomy shared by the CLI and HTTP front-ends.

Each front-end maps these to its own surface:
- HTTP: status code + `{"error": ..., "command": ...}` body
- CLI: printed message + exit code
"""

from __future__ import annotations

from typing import Optional, Sequence


class ChaincmdError(RuntimeError):
    """Base class; `status` is the HTTP equivalent, `exit_code` the CLI one."""

    status = 500
    exit_code = 1


class ConfigError(ChaincmdError):
    status = 400
    exit_code = 2


class RouteCompilationError(ChaincmdError):
    """Two commands compiled to the same path. Fatal at startup."""


class UnresolvedCommandError(ChaincmdError):
    status = 404
    exit_code = 2

    def __init__(self, message: str, *, path: Sequence[str] = (), available: Sequence[str] = ()):
        super().__init__(message)
        self.path = tuple(path)
        self.available = tuple(available)


class CommandError(ChaincmdError):
    """A failure raised by (or on behalf of) a command handler."""

    def __init__(self, message: str, path: Optional[Sequence[str]] = None):
        super().__init__(message)
        self.message = message
        self.path = tuple(path or ())

    @property
    def command(self) -> Optional[str]:
        return " ".join(self.path) if self.path else None

    def __str__(self) -> str:
        if self.path:
            return f"{self.command}: {self.message}"
        return self.message


class InvalidArgumentError(CommandError):
    """Bad or missing argument; raised before the handler runs."""

    status = 400
    exit_code = 2


class MissingArgumentError(InvalidArgumentError):
    pass


class RequestError(ChaincmdError):
    """Malformed inbound HTTP request (e.g. a non-object JSON body)."""

    status = 400
    exit_code = 2


class UnknownPlatformError(ChaincmdError):
    status = 400
    exit_code = 2


class InterpolationError(ChaincmdError):
    """Anchor lookup failed; no partial estimate is produced."""
