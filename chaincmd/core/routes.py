# -*- coding: utf-8 -*-
"""Compile a command tree into a flat HTTP route table.

    contract, c
      read  <arg0> <arg1>        ->  /contract/read/:arg0/:arg1
                                     /c/read/:arg0/:arg1

Routes are compiled once at startup; the returned tuple is never mutated.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from chaincmd.core.aliases import AliasResolver, aliases as default_aliases
from chaincmd.core.commands import CommandNode
from chaincmd.core.errors import RouteCompilationError

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"^:(?P<name>[A-Za-z_][A-Za-z0-9_]*)$")


@dataclass(frozen=True)
class Route:
    path: str
    method: str
    node: CommandNode
    command_path: Tuple[str, ...]

    @property
    def shape(self) -> str:
        """Path with placeholder names erased; two routes with one shape shadow each other."""
        return "/".join(":" if _PLACEHOLDER.match(seg) else seg for seg in self.path.split("/"))

    @property
    def placeholders(self) -> List[str]:
        out: List[str] = []
        for seg in self.path.split("/"):
            m = _PLACEHOLDER.match(seg)
            if m:
                out.append(m.group("name"))
        return out

    def fastapi_path(self, prefix: str = "") -> str:
        """':name' -> '{name}' (FastAPI/Starlette path syntax)."""
        segs = []
        for seg in self.path.split("/"):
            m = _PLACEHOLDER.match(seg)
            segs.append("{" + m.group("name") + "}" if m else seg)
        return (prefix.rstrip("/") if prefix else "") + "/".join(segs)


def _argument_segments(node: CommandNode) -> str:
    out = ""
    for i, arg in enumerate(node.arguments):
        if arg.query:
            continue
        out += f"/:{arg.key(i)}"
    return out


def _walk(
    path: str,
    node: CommandNode,
    command_path: Tuple[str, ...],
    resolver: AliasResolver,
) -> Iterable[Route]:
    for seg in resolver.segments(node):
        route = f"{path}/{seg}{_argument_segments(node)}"
        tokens = command_path + (node.name,)
        if node.is_router:
            for sub in node.subcommands:
                yield from _walk(route, sub, tokens, resolver)
            continue
        if node.api is None:
            continue
        yield Route(path=route, method=(node.api.method or "get").lower(), node=node, command_path=tokens)


def compile_routes(
    roots: Sequence[CommandNode],
    *,
    resolver: Optional[AliasResolver] = None,
) -> Tuple[Route, ...]:
    """Flatten `roots` into routes, failing fast on any path collision."""

    resolver = resolver or default_aliases
    routes: List[Route] = []
    seen: Dict[str, Route] = {}
    for root in roots:
        for route in _walk("", root, (), resolver):
            prev = seen.get(route.shape)
            if prev is not None:
                raise RouteCompilationError(
                    f"Route collision on {route.path}: "
                    f"'{' '.join(prev.command_path)}' ({prev.path}) and '{' '.join(route.command_path)}'"
                )
            seen[route.shape] = route
            routes.append(route)

    logger.debug("Compiled %d routes", len(routes))
    return tuple(routes)
