# -*- coding: utf-8 -*-
"""Single execution entrypoint for both front-ends.

    CLI   argv ──parse_argv──┐
                             ├──> Dispatcher.invoke(node, args, params, context)
    HTTP  request ──adapt────┘

Responsibilities
- Resolve a token sequence to exactly one leaf (CLI side).
- Apply declared defaults, coerce declared types, check required inputs, so both
  surfaces hand identical values to handlers.
- Select the handler (API override in api mode) and wrap its failures in CommandError.
"""

from __future__ import annotations

import inspect
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from chaincmd.core.aliases import AliasResolver, aliases as default_aliases
from chaincmd.core.commands import CommandNode, Handler, ParamSpec
from chaincmd.core.context import ExecutionContext
from chaincmd.core.errors import (
    ChaincmdError,
    CommandError,
    InvalidArgumentError,
    MissingArgumentError,
    UnresolvedCommandError,
)
from chaincmd.core.serialize import dumps

logger = logging.getLogger(__name__)

_INT = re.compile(r"^[+-]?\d+$")
_HEX = re.compile(r"^0x[0-9a-fA-F]+$")
_TRUE = ("true", "1", "yes", "on", "")
_FALSE = ("false", "0", "no", "off")


@dataclass
class Resolution:
    node: CommandNode
    path: Tuple[str, ...]
    args: List[str] = field(default_factory=list)
    params: Dict[str, Any] = field(default_factory=dict)


def resolve_command(
    roots: Sequence[CommandNode],
    tokens: Sequence[str],
    *,
    resolver: Optional[AliasResolver] = None,
) -> Resolution:
    """Walk positional tokens down the tree; the rest become the leaf's positionals.

    Router arguments (always named) are consumed before the subcommand token and
    surface as named params, mirroring the HTTP adapter.
    """

    resolver = resolver or default_aliases
    tokens = list(tokens)
    if not tokens:
        raise UnresolvedCommandError(
            "No command given",
            available=[resolver.tokens(r)[0] for r in roots],
        )

    node = resolver.match(roots, tokens[0])
    if node is None:
        raise UnresolvedCommandError(
            f"Unknown command {tokens[0]!r}",
            path=(tokens[0],),
            available=[resolver.tokens(r)[0] for r in roots],
        )
    path = [node.name]
    rest = tokens[1:]
    inherited: Dict[str, Any] = {}

    while node.is_router:
        for arg in node.arguments:
            if arg.query:
                continue
            if not rest:
                raise MissingArgumentError(f"Missing <{arg.name}>", path)
            inherited[str(arg.name)] = rest.pop(0)
        available = [resolver.tokens(s)[0] for s in node.subcommands]
        if not rest:
            raise UnresolvedCommandError(
                f"'{' '.join(path)}' requires a subcommand",
                path=path,
                available=available,
            )
        sub = resolver.match(node.subcommands, rest[0])
        if sub is None:
            raise UnresolvedCommandError(
                f"Unknown subcommand {rest[0]!r} for '{' '.join(path)}'",
                path=path + [rest[0]],
                available=available,
            )
        node = sub
        path.append(node.name)
        rest = rest[1:]

    return Resolution(node=node, path=tuple(path), args=rest, params=inherited)


def _coerce(value: Any, type_: str, label: str, path: Sequence[str]) -> Any:
    if value is None or type_ == "string":
        return value
    if type_ == "boolean":
        if isinstance(value, bool):
            return value
        s = str(value).strip().lower()
        if s in _TRUE:
            return True
        if s in _FALSE:
            return False
        raise InvalidArgumentError(f"{label}: expected a boolean, got {value!r}", path)
    if type_ == "number":
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, float):
            number = value
        else:
            s = str(value).strip()
            if _INT.match(s):
                return int(s)
            if _HEX.match(s):
                return int(s, 16)
            try:
                number = float(s)
            except ValueError:
                raise InvalidArgumentError(f"{label}: expected a number, got {value!r}", path) from None
        # NaN and Infinity have no JSON form
        if not math.isfinite(number):
            raise InvalidArgumentError(f"{label}: expected a finite number, got {value!r}", path)
        return number
    return value


def _canonical_params(node: CommandNode, params: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in params.items():
        spec: Optional[ParamSpec] = node.find_param(key)
        out[spec.name if spec else str(key).lstrip("-")] = value
    return out


def prepare_call(
    node: CommandNode,
    args: Sequence[Any],
    params: Mapping[str, Any],
    path: Sequence[str] = (),
) -> Tuple[List[Any], Dict[str, Any]]:
    """Defaults, coercion and required checks shared by both surfaces."""

    args = list(args)
    params = _canonical_params(node, params or {})

    for i, arg in enumerate(node.arguments):
        value = args[i] if i < len(args) else None
        if value is None and arg.query:
            value = params.get(arg.key(i))
        if value is None or value == "":
            if arg.required:
                raise MissingArgumentError(f"Missing required argument <{arg.key(i)}>", path)
            continue
        value = _coerce(value, arg.type, f"<{arg.key(i)}>", path)
        if i < len(args):
            args[i] = value
        else:
            args.extend([None] * (i - len(args)))
            args.append(value)

    for spec in node.params.values():
        if params.get(spec.name) is None:
            if spec.required:
                raise MissingArgumentError(f"Missing required parameter --{spec.name}", path)
            if spec.default is not None:
                params[spec.name] = spec.default
            continue
        params[spec.name] = _coerce(params[spec.name], spec.type, f"--{spec.name}", path)

    return args, params


class Dispatcher:
    def __init__(self, roots: Sequence[CommandNode] = (), *, resolver: Optional[AliasResolver] = None):
        self.roots = tuple(roots)
        self.resolver = resolver or default_aliases

    def resolve(self, tokens: Sequence[str]) -> Resolution:
        return resolve_command(self.roots, tokens, resolver=self.resolver)

    @staticmethod
    def select_handler(node: CommandNode, context: ExecutionContext) -> Optional[Handler]:
        if context.is_api and node.api is not None and node.api.handler is not None:
            return node.api.handler
        return node.handler

    async def invoke(
        self,
        node: CommandNode,
        args: Sequence[Any],
        params: Mapping[str, Any],
        context: ExecutionContext,
        path: Optional[Sequence[str]] = None,
    ) -> Any:
        path = tuple(path or (node.name,))
        if node.is_router:
            raise UnresolvedCommandError(
                f"'{' '.join(path)}' requires a subcommand",
                path=path,
                available=[self.resolver.tokens(s)[0] for s in node.subcommands],
            )

        handler = self.select_handler(node, context)
        if handler is None:
            raise CommandError("Command has no handler", path)

        call_args, call_params = prepare_call(node, args, params, path)
        logger.debug("invoke %s args=%s params=%s env=%s", " ".join(path), call_args, call_params, context.env)
        try:
            result = handler(call_args, call_params, context, node)
            if inspect.isawaitable(result):
                result = await result
        except CommandError as exc:
            if not exc.path:
                exc.path = path
            raise
        except Exception as exc:
            err = CommandError(str(exc) or exc.__class__.__name__, path)
            if isinstance(exc, ChaincmdError):
                err.status, err.exit_code = exc.status, exc.exit_code
            raise err from exc
        return result

    async def invoke_api(
        self,
        node: CommandNode,
        args: Sequence[Any],
        params: Mapping[str, Any],
        context: ExecutionContext,
        path: Optional[Sequence[str]] = None,
    ) -> Any:
        """API mode: broadcasting handlers return the tx hash instead of waiting."""
        return await self.invoke(node, args, params, context.for_api(), path)

    @staticmethod
    def render_json(result: Any) -> str:
        return dumps(result)
