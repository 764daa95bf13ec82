# -*- coding: utf-8 -*-
"""Thin async chain client over web3.

The core only relies on `get_blocks` (interpolation) and on the client being created
per platform by `ChainFactory`. Everything else is a convenience for command handlers.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Union

from web3 import AsyncHTTPProvider, AsyncWeb3

from chaincmd.core.errors import ChaincmdError

logger = logging.getLogger(__name__)

BlockId = Union[int, str]
RpcFn = Callable[..., Awaitable[Any]]


class RpcError(ChaincmdError):
    def __init__(self, method: str, error: Any):
        msg = error.get("message") if isinstance(error, dict) else str(error)
        super().__init__(f"{method}: {msg}")
        self.method = method
        self.error = error


class RpcMethods:
    """Capability table: JSON-RPC method name -> coroutine function.

    Unknown names are registered on first use, so any node-specific method
    (`debug_traceTransaction`, `anvil_mine`, ...) is callable without a code change.
    """

    def __init__(self, request: Callable[[str, Sequence[Any]], Awaitable[Any]]):
        self._request = request
        self._fns: Dict[str, RpcFn] = {}

    def __contains__(self, method: str) -> bool:
        return method in self._fns

    def register(self, method: str, fn: Optional[RpcFn] = None) -> RpcFn:
        if fn is None:
            async def fn(*args: Any) -> Any:
                return await self._request(method, list(args))
        self._fns[method] = fn
        return fn

    def get(self, method: str) -> RpcFn:
        fn = self._fns.get(method)
        if fn is None:
            fn = self.register(method)
        return fn

    async def call(self, method: str, *args: Any) -> Any:
        return await self.get(method)(*args)


class ChainClient:
    def __init__(self, platform: str, rpc_url: str, *, w3: Optional[AsyncWeb3] = None):
        self.platform = platform
        self.rpc_url = rpc_url
        self.w3 = w3 or AsyncWeb3(AsyncHTTPProvider(rpc_url))
        self.rpc = RpcMethods(self._request)

    def __repr__(self) -> str:
        return f"ChainClient({self.platform!r}, {self.rpc_url!r})"

    async def _request(self, method: str, params: Sequence[Any]) -> Any:
        logger.debug("rpc %s %s", method, params)
        response = await self.w3.provider.make_request(method, list(params))
        if response.get("error"):
            raise RpcError(method, response["error"])
        return response.get("result")

    async def get_block(self, block: BlockId = "latest", *, full_transactions: bool = False) -> Dict[str, Any]:
        return dict(await self.w3.eth.get_block(block, full_transactions=full_transactions))

    async def get_blocks(self, numbers: Iterable[int]) -> List[Dict[str, Any]]:
        """One logical round trip for many blocks; order follows `numbers`."""
        nrs = list(numbers)
        blocks = await asyncio.gather(*(self.w3.eth.get_block(nr) for nr in nrs))
        return [{"number": int(b["number"]), "timestamp": int(b["timestamp"])} for b in blocks]

    async def get_transaction(self, tx_hash: str) -> Dict[str, Any]:
        return dict(await self.w3.eth.get_transaction(tx_hash))

    async def get_transaction_receipt(self, tx_hash: str) -> Dict[str, Any]:
        return dict(await self.w3.eth.get_transaction_receipt(tx_hash))

    async def get_storage_at(self, address: str, slot: Union[int, str], block: BlockId = "latest") -> str:
        position = int(slot, 0) if isinstance(slot, str) else int(slot)
        value = await self.w3.eth.get_storage_at(self.checksum(address), position, block_identifier=block)
        return "0x" + bytes(value).hex()

    async def get_storage_batched(self, address: str, slots: Sequence[int]) -> List[str]:
        return list(await asyncio.gather(*(self.get_storage_at(address, s) for s in slots)))

    async def send_raw_transaction(self, raw: str) -> str:
        tx_hash = await self.w3.eth.send_raw_transaction(raw)
        return "0x" + bytes(tx_hash).hex()

    async def wait_for_receipt(self, tx_hash: str, *, timeout: float = 120) -> Dict[str, Any]:
        return dict(await self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout))

    def contract(self, address: str, abi: List[Dict[str, Any]]):
        return self.w3.eth.contract(address=self.checksum(address), abi=abi)

    @staticmethod
    def checksum(address: str) -> str:
        return AsyncWeb3.to_checksum_address(address)

    async def aclose(self) -> None:
        disconnect = getattr(self.w3.provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()
