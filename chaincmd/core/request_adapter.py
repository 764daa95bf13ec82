# -*- coding: utf-8 -*-
"""Rebuild the CLI call frame `(args, params)` from an HTTP request.

After adaptation a handler cannot tell an HTTP request from a terminal invocation:

    GET /api/contract/read/Token/balanceOf?owner=0x..&chain=polygon
      -> args   = ["Token", "balanceOf"]
         params = {"owner": "0x..", "chain": "polygon"}

Binding rules
- `arg{N}` keys bind to positional index N.
- A key equal to a declared argument name binds to that argument's index.
- Remaining query keys (and unmatched path keys) become named params.
- JSON body fields are merged last and win on collision.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

from chaincmd.core.commands import CommandNode
from chaincmd.core.errors import RequestError

_INDEX_KEY = re.compile(r"^arg(?P<i>\d+)$")


def _positional_index(node: CommandNode, key: str) -> int:
    m = _INDEX_KEY.match(key)
    if m:
        return int(m.group("i"))
    return node.argument_index(key)


def _place(args: List[Any], index: int, value: Any) -> None:
    while len(args) <= index:
        args.append(None)
    args[index] = value


def adapt(
    path_params: Mapping[str, Any],
    body: Optional[Any],
    node: CommandNode,
    query: Optional[Mapping[str, Any]] = None,
) -> Tuple[List[Any], Dict[str, Any]]:
    if body is not None and not isinstance(body, Mapping):
        raise RequestError("Request body must be a JSON object")

    args: List[Any] = [None] * len(node.arguments)
    params: Dict[str, Any] = {}

    for key, value in (path_params or {}).items():
        index = _positional_index(node, key)
        if index > -1:
            _place(args, index, value)
            continue
        params[key] = value

    for key, value in (query or {}).items():
        index = _positional_index(node, key)
        bindable = index > -1 and (_INDEX_KEY.match(key) is not None or node.arguments[index].query)
        if bindable and (index >= len(args) or args[index] is None):
            _place(args, index, value)
            continue
        params[key] = value

    for key, value in (body or {}).items():
        index = node.argument_index(key)
        if index > -1 and node.arguments[index].query:
            _place(args, index, value)
        params[key] = value

    return args, params
