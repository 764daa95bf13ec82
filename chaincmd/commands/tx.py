# -*- coding: utf-8 -*-
"""tx view | tx send

`tx send` broadcasts an already signed transaction. From the terminal it blocks
until the receipt is available; over HTTP it returns the hash right after broadcast.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from web3.exceptions import TransactionNotFound

from chaincmd.commands.common import CHAIN
from chaincmd.core.commands import ApiMeta, ArgumentSpec, CommandNode, ParamSpec

logger = logging.getLogger(__name__)


async def _view(args, params, context, node) -> Dict[str, Any]:
    (tx_hash,) = args[:1]
    tx = await context.client.get_transaction(tx_hash)
    try:
        receipt = await context.client.get_transaction_receipt(tx_hash)
    except TransactionNotFound:
        receipt = None
    return {"tx": tx, "receipt": receipt}


async def _send(args, params, context, node) -> Dict[str, Any]:
    (raw,) = args[:1]
    tx_hash = await context.client.send_raw_transaction(raw)
    logger.info("Broadcast %s on %s", tx_hash, context.platform)
    if context.is_api:
        return {"hash": tx_hash}

    receipt = await context.client.wait_for_receipt(tx_hash, timeout=float(params.get("timeout") or 120))
    return {
        "hash": tx_hash,
        "status": receipt.get("status"),
        "blockNumber": receipt.get("blockNumber"),
        "receipt": receipt,
    }


CTx = CommandNode(
    "tx",
    description="Transaction utils",
    subcommands=(
        CommandNode(
            "view",
            description="Load transaction and receipt by hash",
            arguments=(ArgumentSpec("hash", description="Tx hash", required=True),),
            params=(CHAIN,),
            api=ApiMeta(method="get"),
            handler=_view,
        ),
        CommandNode(
            "send",
            description="Broadcast a signed raw transaction",
            arguments=(ArgumentSpec("raw", description="Signed tx hex", required=True, query=True),),
            params=(
                CHAIN,
                ParamSpec.parse("--timeout", type="number", default=120, description="Receipt wait (CLI only), seconds"),
            ),
            api=ApiMeta(method="post"),
            handler=_send,
        ),
    ),
)
