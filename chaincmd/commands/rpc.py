# -*- coding: utf-8 -*-
"""rpc <method> [params...]: raw JSON-RPC call."""

from __future__ import annotations

from chaincmd.commands.common import CHAIN
from chaincmd.core.commands import ApiMeta, ArgumentSpec, CommandNode
from chaincmd.core.rpc import RpcService


async def _process(args, params, context, node):
    return await RpcService().process(args, params, context)


CRpc = CommandNode(
    "rpc",
    description="Call any JSON-RPC method; extra positionals are its params (uint256:1, boolean:true)",
    arguments=(ArgumentSpec("method", description="e.g. eth_blockNumber", required=True),),
    params=(CHAIN,),
    api=ApiMeta(method="get"),
    handler=_process,
)
