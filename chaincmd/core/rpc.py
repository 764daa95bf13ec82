# -*- coding: utf-8 -*-
"""Raw JSON-RPC passthrough with CLI-friendly argument typing.

    chaincmd rpc eth_getBalance 0xabc.. latest
    chaincmd rpc eth_getBlockByNumber uint256:17000000 boolean:false

Typing rules (per argument)
- `type:value` prefix: `boolean:` / `bool:` -> bool, `uint*:` / `int*:` -> hex quantity.
- no prefix: all digits -> hex quantity, true/false -> bool, anything else unchanged.
"""

from __future__ import annotations

import re
from typing import Any, List, Optional, Sequence

from chaincmd.core.errors import InvalidArgumentError

_TYPED = re.compile(r"^(?P<type>bool|boolean|u?int\d*|string|address|bytes\d*):(?P<value>.*)$", re.S)


def detect_type(raw: str) -> Optional[str]:
    if re.match(r"^\d+$", raw):
        return "uint256"
    if re.match(r"^(true|false)$", raw, re.I):
        return "boolean"
    return None


def to_value(type_: Optional[str], raw: str) -> Any:
    if type_ in ("boolean", "bool"):
        s = raw.strip().lower()
        if s in ("true", "1"):
            return True
        if s in ("false", "0"):
            return False
        raise InvalidArgumentError(f"Invalid boolean value: {raw}")
    if type_ and re.match(r"^u?int\d*$", type_):
        try:
            return hex(int(raw.strip(), 0))
        except ValueError:
            raise InvalidArgumentError(f"Invalid integer value: {raw}")
    return raw


def parse_rpc_args(raw_args: Sequence[Any]) -> List[Any]:
    out: List[Any] = []
    for raw in raw_args:
        if not isinstance(raw, str):
            out.append(raw)
            continue
        m = _TYPED.match(raw)
        if m:
            out.append(to_value(m.group("type"), m.group("value")))
            continue
        out.append(to_value(detect_type(raw), raw))
    return out


class RpcService:
    async def process(self, args: Sequence[Any], params: Any, context: Any) -> Any:
        if not args or not args[0]:
            raise InvalidArgumentError("RPC method name is required")
        method, *method_args = list(args)
        values = parse_rpc_args([a for a in method_args if a is not None])
        return await context.client.rpc.call(str(method), *values)
