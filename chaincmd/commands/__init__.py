# -*- coding: utf-8 -*-
"""The shipped command tree (shared by `chaincmd` and the HTTP API)."""

from __future__ import annotations

from typing import List

from chaincmd.commands.block import CBlock
from chaincmd.commands.contract import CContract
from chaincmd.commands.rpc import CRpc
from chaincmd.commands.server import CServer
from chaincmd.commands.tx import CTx
from chaincmd.core.commands import CommandNode


def get_commands() -> List[CommandNode]:
    return [CContract, CRpc, CTx, CBlock, CServer]
