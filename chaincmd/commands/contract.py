# -*- coding: utf-8 -*-
"""contract (alias c): installed-contract utils.

    chaincmd c list [--chain eth]
    chaincmd c abi USDT
    chaincmd c read USDT balanceOf --account 0x..   (or: c read USDT balanceOf 0x..)
    chaincmd c logs USDT Transfer --from 0x.. --format csv -o transfers.csv
    chaincmd c slot USDT 0-3
    chaincmd c vars USDT

Method inputs come from named params (by ABI input name) or from extra positionals.
Write methods are not signed here; build the raw tx elsewhere and use `tx send`.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence

from chaincmd.commands.common import CHAIN, OUTPUT, on_platform, registry_for
from chaincmd.core.commands import ApiMeta, ArgumentSpec, CommandNode, ParamSpec
from chaincmd.core.errors import InvalidArgumentError
from chaincmd.core.interpolation import BlockTimestampInterpolator
from chaincmd.core.packages import ContractPackage, is_address
from chaincmd.core.serialize import to_jsonable

logger = logging.getLogger(__name__)

READ_MUTABILITY = ("view", "pure")


def is_read_method(item: Dict[str, Any]) -> bool:
    if item.get("stateMutability") in READ_MUTABILITY:
        return True
    return bool(item.get("constant"))


def signature(item: Dict[str, Any]) -> str:
    ins = ", ".join(f"{x.get('type')} {x.get('name') or ''}".strip() for x in item.get("inputs") or [])
    line = f"{item.get('name')}({ins})"
    outs = ", ".join(str(x.get("type")) for x in item.get("outputs") or [])
    if outs:
        line += f" returns ({outs})"
    return line


def abi_value(type_: str, raw: Any) -> Any:
    """CLI string -> python value web3 can encode for `type_`."""
    if not isinstance(raw, str):
        return raw
    s = raw.strip()
    if type_.endswith("]") or type_.startswith("tuple"):
        try:
            return json.loads(s)
        except json.JSONDecodeError:
            raise InvalidArgumentError(f"Expected a JSON value for {type_}, got {raw!r}")
    if type_.startswith(("uint", "int")):
        try:
            return int(s, 0)
        except ValueError:
            raise InvalidArgumentError(f"Expected an integer for {type_}, got {raw!r}")
    if type_ == "bool":
        low = s.lower()
        if low in ("true", "1"):
            return True
        if low in ("false", "0"):
            return False
        raise InvalidArgumentError(f"Expected a boolean, got {raw!r}")
    return s


def method_arguments(item: Dict[str, Any], params: Dict[str, Any], extra: Sequence[Any]) -> List[Any]:
    values: List[Any] = []
    rest = [x for x in extra if x is not None]
    for i, inp in enumerate(item.get("inputs") or []):
        name = inp.get("name") or f"arg{i}"
        if name in params and params[name] is not None:
            raw = params[name]
        elif rest:
            raw = rest.pop(0)
        else:
            raise InvalidArgumentError(f"Missing method input --{name} ({inp.get('type')})")
        values.append(abi_value(str(inp.get("type")), raw))
    return values


def _package(context, name_or_address: str, params: Dict[str, Any]) -> ContractPackage:
    registry = registry_for(context)
    platform = params.get("chain") or context.platform
    pkg = registry.find(name_or_address, platform)
    if pkg is not None:
        return pkg
    if is_address(name_or_address) and params.get("abi"):
        return ContractPackage(
            name=name_or_address,
            address=name_or_address,
            platform=str(platform),
            abi_path=Path(params["abi"]).expanduser().resolve(),
        )
    return registry.get(name_or_address, platform)


def _abi_item(abi: List[Dict[str, Any]], name: str, kind: str, pkg: ContractPackage) -> Dict[str, Any]:
    for item in abi:
        if item.get("type") == kind and item.get("name") == name:
            return item
    if kind == "event":
        raise InvalidArgumentError(f'"{name}" is not an event of {pkg.name}. `chaincmd c abi {pkg.name}` lists them')
    raise InvalidArgumentError(f"Method {name} not found. `chaincmd c abi {pkg.name}` to view available methods")


def _block_param(raw: Any):
    if raw is None:
        return "latest"
    s = str(raw).strip()
    if s.isdigit():
        return int(s)
    if s in ("latest", "earliest", "pending", "safe", "finalized"):
        return s
    raise InvalidArgumentError(f"--block expects a number or a tag, got {raw!r}")


async def _list(args, params, context, node):
    return [p.to_dict() for p in registry_for(context).all(params.get("chain"))]


async def _abi(args, params, context, node):
    pkg = _package(context, args[0], params)
    methods = [x for x in pkg.load_abi() if x.get("type") == "function"]
    return {
        "name": pkg.name,
        "address": pkg.address,
        "platform": pkg.platform,
        "read": [signature(x) for x in methods if is_read_method(x)],
        "write": [signature(x) for x in methods if not is_read_method(x)],
        "events": [signature(x) for x in pkg.load_abi() if x.get("type") == "event"],
    }


async def _read(args, params, context, node):
    name, method, *extra = args
    pkg = _package(context, name, params)
    abi = pkg.load_abi()
    item = _abi_item(abi, method, "function", pkg)
    if not is_read_method(item):
        raise InvalidArgumentError(f"{method} is a write method; sign the tx elsewhere and use `tx send`")
    values = method_arguments(item, params, extra)
    address = params.get("address") or pkg.address

    async with on_platform(context, params.get("chain") or pkg.platform) as ctx:
        contract = ctx.client.contract(address, abi)
        fn = getattr(contract.functions, method)(*values)
        logger.info("READ %s.%s on %s", pkg.name, method, ctx.platform)
        call_kwargs: Dict[str, Any] = {"block_identifier": _block_param(params.get("block"))}
        if params.get("sender"):
            call_kwargs["transaction"] = {"from": ctx.client.checksum(params["sender"])}
        return await fn.call(**call_kwargs)


def _log_rows(logs: Sequence[Any], dates: Dict[int, Any]) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    for log in logs:
        nr = int(log["blockNumber"])
        rows.append(
            {
                "block": {"number": nr, "date": dates.get(nr)},
                "transactionHash": log["transactionHash"],
                "event": log["event"],
                "params": dict(log["args"]),
            }
        )
    return rows


def render_csv(rows: List[Dict[str, Any]], inputs: Sequence[str]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(["Block", "Date", "Tx", "Event", *inputs])
    for row in to_jsonable(rows):
        writer.writerow(
            [
                row["block"]["number"],
                row["block"]["date"] or "",
                row["transactionHash"],
                row["event"],
                *[row["params"].get(name, "") for name in inputs],
            ]
        )
    return buf.getvalue()


def _format(params: Dict[str, Any]) -> str:
    fmt = params.get("format")
    if not fmt and params.get("output"):
        fmt = Path(str(params["output"])).suffix.lstrip(".") or None
    fmt = (fmt or "json").lower()
    if fmt not in ("json", "csv"):
        raise InvalidArgumentError(f"--format must be json or csv, got {fmt!r}")
    return fmt


async def _logs(args, params, context, node):
    if params.get("output") and context.is_api:
        raise InvalidArgumentError("--output is not available over HTTP; use --format csv to get the text back")
    name, event_name = args[:2]
    pkg = _package(context, name, params)
    abi = pkg.load_abi()
    event = _abi_item(abi, event_name, "event", pkg)
    fmt = _format(params)
    inputs = [str(x.get("name")) for x in event.get("inputs") or []]
    filters = {
        x["name"]: params[x["name"]]
        for x in event.get("inputs") or []
        if x.get("indexed") and params.get(x.get("name")) is not None
    }

    async with on_platform(context, params.get("chain") or pkg.platform) as ctx:
        contract = ctx.client.contract(pkg.address, abi)
        logs = await getattr(contract.events, event_name)().get_logs(
            argument_filters=filters or None,
            from_block=int(params.get("fromBlock") or 0),
            to_block=_block_param(params.get("toBlock")),
        )
        logger.info("Loaded %d %s events", len(logs), event_name)
        dates = await BlockTimestampInterpolator(ctx.client).estimate(int(x["blockNumber"]) for x in logs)

    rows = _log_rows(logs, dates)
    text = render_csv(rows, inputs) if fmt == "csv" else json.dumps(to_jsonable(rows), indent=2)

    if params.get("output"):
        out = Path(str(params["output"])).expanduser()
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text, encoding="utf-8")
        return {"output": str(out), "format": fmt, "count": len(rows)}
    return rows if fmt == "json" else text


def _slot_range(raw: str) -> List[int]:
    start, _, end = str(raw).partition("-")
    try:
        lo, hi = int(start, 0), int(end, 0)
    except ValueError:
        raise InvalidArgumentError(f"Invalid slot range {raw!r}, expected start-end")
    if hi < lo:
        raise InvalidArgumentError(f"Invalid slot range {raw!r}")
    return list(range(lo, hi + 1))


async def _slot(args, params, context, node):
    name, slot = args[:2]
    if is_address(name):
        address, platform = name, params.get("chain")
    else:
        pkg = _package(context, name, params)
        address, platform = pkg.address, params.get("chain") or pkg.platform
    slot = str(slot)
    async with on_platform(context, platform) as ctx:
        if "-" in slot and not slot.startswith("-"):
            slots = _slot_range(slot)
            values = await ctx.client.get_storage_batched(address, slots)
            return {str(s): v for s, v in zip(slots, values)}
        return await ctx.client.get_storage_at(address, slot)


async def _vars(args, params, context, node):
    pkg = _package(context, args[0], params)
    slots = pkg.load_slots()
    return [
        {"slot": s.slot, "offset": s.position, "name": s.name, "type": s.type.replace("=>", "→")}
        for s in slots
        if not s.overridden
    ]


_NAME = ArgumentSpec("name", description="Installed contract name or address", required=True)
_ABI = ParamSpec.parse("--abi", description="ABI json for a contract that is not installed")

CContract = CommandNode(
    "contract, c",
    description="Installed contracts: ABI, reads, events, storage",
    subcommands=(
        CommandNode(
            "list, ls",
            description="Show installed contracts",
            params=(CHAIN,),
            api=ApiMeta(method="get"),
            handler=_list,
        ),
        CommandNode(
            "abi",
            description="Show read/write methods and events",
            arguments=(_NAME,),
            params=(CHAIN, _ABI),
            api=ApiMeta(method="get"),
            handler=_abi,
        ),
        CommandNode(
            "read",
            description="Call a view/pure method",
            arguments=(_NAME, ArgumentSpec("method", required=True)),
            params=(
                CHAIN,
                _ABI,
                ParamSpec.parse("--block", description="Block number or tag"),
                ParamSpec.parse("--sender", description="msg.sender for the call"),
                ParamSpec.parse("--address", description="Override the contract address (proxies)"),
            ),
            api=ApiMeta(method="get"),
            handler=_read,
        ),
        CommandNode(
            "logs",
            description="Event logs with approximate block dates",
            arguments=(_NAME, ArgumentSpec("event", required=True)),
            params=(
                CHAIN,
                OUTPUT,
                ParamSpec.parse("--format", description="json | csv (default from --output suffix, else json)"),
                ParamSpec.parse("--fromBlock", type="number", default=0),
                ParamSpec.parse("--toBlock", description="Block number or latest"),
            ),
            api=ApiMeta(method="get"),
            handler=_logs,
        ),
        CommandNode(
            "slot",
            description="Raw storage: a single slot or a start-end range",
            arguments=(_NAME, ArgumentSpec("slot", required=True)),
            params=(CHAIN,),
            api=ApiMeta(method="get"),
            handler=_slot,
        ),
        CommandNode(
            "vars",
            description="Storage layout of an installed contract",
            arguments=(_NAME,),
            params=(CHAIN,),
            api=ApiMeta(method="get"),
            handler=_vars,
        ),
    ),
)
