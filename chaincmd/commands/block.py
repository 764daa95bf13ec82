# -*- coding: utf-8 -*-
"""block get | block dates"""

from __future__ import annotations

import re
from typing import Any, Dict, List

from chaincmd.commands.common import CHAIN
from chaincmd.core.commands import ApiMeta, ArgumentSpec, CommandNode, ParamSpec
from chaincmd.core.errors import InvalidArgumentError
from chaincmd.core.interpolation import BlockTimestampInterpolator


def _block_id(raw: Any):
    s = str(raw).strip()
    if re.match(r"^\d+$", s):
        return int(s)
    if re.match(r"^0x[0-9a-fA-F]+$", s) and len(s) < 66:
        return int(s, 16)
    return s


def parse_block_list(raw: Any) -> List[int]:
    """'100,200 300' / [100, 200] -> [100, 200, 300]"""
    if raw is None:
        return []
    items = raw if isinstance(raw, (list, tuple)) else re.split(r"[\s,]+", str(raw))
    out: List[int] = []
    for item in items:
        s = str(item).strip()
        if not s:
            continue
        try:
            out.append(int(s, 0))
        except ValueError:
            raise InvalidArgumentError(f"Invalid block number: {s!r}")
    return out


async def _get(args, params, context, node) -> Dict[str, Any]:
    (block,) = args[:1]
    return await context.client.get_block(_block_id(block), full_transactions=bool(params.get("txs")))


async def _dates(args, params, context, node) -> Dict[str, str]:
    numbers = parse_block_list(params.get("blocks"))
    lo, hi = params.get("from"), params.get("to")
    if (lo is None) != (hi is None):
        raise InvalidArgumentError("--from and --to go together")
    if lo is not None:
        if hi < lo:
            raise InvalidArgumentError(f"--to ({hi}) is below --from ({lo})")
        numbers += [int(lo), int(hi)]
    if not numbers:
        raise InvalidArgumentError("Pass --blocks 1,2,3 or --from/--to")
    dates = await BlockTimestampInterpolator(context.client).estimate(numbers)
    return {str(nr): dt.isoformat() for nr, dt in sorted(dates.items())}


CBlock = CommandNode(
    "block",
    description="Block utils",
    subcommands=(
        CommandNode(
            "get",
            description="Load a block by number, hash or tag (latest, pending, ...)",
            arguments=(ArgumentSpec("block", required=True),),
            params=(CHAIN, ParamSpec.parse("--txs", type="boolean", description="Include full transactions")),
            api=ApiMeta(method="get"),
            handler=_get,
        ),
        CommandNode(
            "dates",
            description="Approximate dates for many blocks with a bounded number of lookups",
            params=(
                CHAIN,
                ParamSpec.parse("--blocks", description="Comma separated block numbers"),
                ParamSpec.parse("--from", type="number", description="Range start (both ends are anchors)"),
                ParamSpec.parse("--to", type="number", description="Range end"),
            ),
            api=ApiMeta(method="get"),
            handler=_dates,
        ),
    ),
)
