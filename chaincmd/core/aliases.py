# -*- coding: utf-8 -*-
"""Alias expansion: which tokens invoke a node and which path segments reach it."""

from __future__ import annotations

from typing import List, Optional, Sequence

from chaincmd.core.commands import CommandNode
from chaincmd.core.errors import RouteCompilationError


def _dedup_preserve_order(items: Sequence[str]) -> List[str]:
    out: List[str] = []
    seen = set()
    for x in items:
        if not x or x in seen:
            continue
        out.append(x)
        seen.add(x)
    return out


class AliasResolver:
    """Stateless; kept as a class so front-ends can swap segment normalization."""

    def tokens(self, node: CommandNode) -> List[str]:
        """CLI tokens, primary name first."""
        return _dedup_preserve_order([node.name, *node.aliases])

    def segments(self, node: CommandNode) -> List[str]:
        """URL segments, one per token; flag-style tokens lose their dashes.

        Raises RouteCompilationError when two tokens of the node normalize to the
        same segment.
        """
        out: List[str] = []
        for token in self.tokens(node):
            seg = token.lstrip("-").strip("/")
            if not seg:
                raise RouteCompilationError(f"Command {node.name!r} has an empty path segment for {token!r}")
            if seg in out:
                raise RouteCompilationError(
                    f"Command {node.name!r}: aliases collide on path segment '/{seg}'"
                )
            out.append(seg)
        return out

    def matches(self, node: CommandNode, token: str) -> bool:
        return token in self.tokens(node)

    def match(self, candidates: Sequence[CommandNode], token: str) -> Optional[CommandNode]:
        """First match wins among siblings."""
        for node in candidates:
            if self.matches(node, token):
                return node
        return None


aliases = AliasResolver()
