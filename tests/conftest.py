# -*- coding: utf-8 -*-
from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Sequence

import pytest

from chaincmd.core.chain_client import RpcMethods
from chaincmd.core.config import AppConfig
from chaincmd.core.context import ChainFactory, ExecutionContext

GENESIS = 1_600_000_000
BLOCK_TIME = 12
TX_HASH = "0x" + "ab" * 32
TOKEN_ADDRESS = "0x" + "11" * 20


class _Members:
    """`obj.anything` -> build('anything'), the way web3 exposes `functions` and `events`."""

    def __init__(self, build: Callable[[str], Any]):
        self._build = build

    def __getattr__(self, name: str) -> Any:
        return self._build(name)


class FakeContract:
    """Records every call and log query; answers from the owning client's tables."""

    def __init__(self, client: "FakeClient", address: str, abi: List[Dict[str, Any]]):
        self.client = client
        self.address = address
        self.abi = abi
        self.functions = _Members(self._function)
        self.events = _Members(self._event)

    def _function(self, name: str) -> Callable[..., Any]:
        def bind(*values: Any) -> SimpleNamespace:
            async def call(**kwargs: Any) -> Any:
                self.client.contract_calls.append((name, list(values), kwargs))
                return self.client.call_results.get(name)

            return SimpleNamespace(call=call)

        return bind

    def _event(self, name: str) -> Callable[[], SimpleNamespace]:
        async def get_logs(**kwargs: Any) -> List[Dict[str, Any]]:
            self.client.log_queries.append((name, kwargs))
            return list(self.client.event_logs.get(name, []))

        return lambda: SimpleNamespace(get_logs=get_logs)


class FakeClient:
    """In-memory chain: block N was mined at GENESIS + N * BLOCK_TIME."""

    def __init__(self, platform: str = "eth", rpc_url: str = ""):
        self.platform = platform
        self.rpc_url = rpc_url
        self.block_requests: List[List[int]] = []
        self.rpc_calls: List[tuple] = []
        self.sent: List[str] = []
        self.waited: List[str] = []
        self.closed = False
        self.contract_calls: List[tuple] = []
        self.log_queries: List[tuple] = []
        self.call_results: Dict[str, Any] = {}
        self.event_logs: Dict[str, List[Dict[str, Any]]] = {}
        self.contracts: List[FakeContract] = []
        self.rpc = RpcMethods(self._request)

    @staticmethod
    def timestamp(nr: int) -> int:
        return GENESIS + int(nr) * BLOCK_TIME

    async def _request(self, method: str, params: Sequence[Any]) -> Any:
        self.rpc_calls.append((method, list(params)))
        return {"method": method, "params": list(params)}

    async def get_block(self, block: Any = "latest", *, full_transactions: bool = False) -> Dict[str, Any]:
        nr = 1000 if block == "latest" else int(block)
        return {"number": nr, "timestamp": self.timestamp(nr), "transactions": [], "full": full_transactions}

    async def get_blocks(self, numbers) -> List[Dict[str, Any]]:
        nrs = list(numbers)
        self.block_requests.append(nrs)
        return [{"number": nr, "timestamp": self.timestamp(nr)} for nr in nrs]

    async def get_transaction(self, tx_hash: str) -> Dict[str, Any]:
        return {"hash": tx_hash, "blockNumber": 10, "input": b"\x01\x02"}

    async def get_transaction_receipt(self, tx_hash: str) -> Dict[str, Any]:
        return {"transactionHash": tx_hash, "status": 1, "blockNumber": 10}

    async def get_storage_at(self, address: str, slot: Any, block: Any = "latest") -> str:
        position = int(slot, 0) if isinstance(slot, str) else int(slot)
        return "0x" + format(position, "064x")

    async def get_storage_batched(self, address: str, slots: Sequence[int]) -> List[str]:
        return [await self.get_storage_at(address, s) for s in slots]

    async def send_raw_transaction(self, raw: str) -> str:
        self.sent.append(raw)
        return TX_HASH

    async def wait_for_receipt(self, tx_hash: str, *, timeout: float = 120) -> Dict[str, Any]:
        self.waited.append(tx_hash)
        return {"transactionHash": tx_hash, "status": 1, "blockNumber": 11}

    def contract(self, address: str, abi: List[Dict[str, Any]]) -> FakeContract:
        contract = FakeContract(self, address, abi)
        self.contracts.append(contract)
        return contract

    @staticmethod
    def checksum(address: str) -> str:
        return address.lower()

    async def aclose(self) -> None:
        self.closed = True


class RecordingFactory(ChainFactory):
    def __init__(self, config: AppConfig):
        super().__init__(config, client_cls=FakeClient)
        self.created: List[FakeClient] = []

    def create(self, platform: str) -> Any:
        client = super().create(platform)
        self.created.append(client)
        return client


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def registry_path(tmp_path: Path) -> Path:
    abi = [
        {
            "type": "function",
            "name": "balanceOf",
            "stateMutability": "view",
            "inputs": [{"name": "owner", "type": "address"}],
            "outputs": [{"name": "", "type": "uint256"}],
        },
        {
            "type": "function",
            "name": "transfer",
            "stateMutability": "nonpayable",
            "inputs": [{"name": "to", "type": "address"}, {"name": "amount", "type": "uint256"}],
            "outputs": [{"name": "", "type": "bool"}],
        },
        {
            "type": "event",
            "name": "Transfer",
            "inputs": [
                {"name": "from", "type": "address", "indexed": True},
                {"name": "to", "type": "address", "indexed": True},
                {"name": "value", "type": "uint256", "indexed": False},
            ],
        },
    ]
    slots = [
        {"slot": 0, "position": 0, "name": "owner", "type": "address", "size": 160},
        {"slot": 1, "position": 0, "name": "balances", "type": "mapping(address => uint256)"},
        {"slot": 2, "position": 0, "name": "owner$", "type": "address"},
    ]
    (tmp_path / "abi").mkdir()
    (tmp_path / "abi" / "Token.json").write_text(json.dumps({"abi": abi}), encoding="utf-8")
    (tmp_path / "abi" / "Token.slots.json").write_text(json.dumps(slots), encoding="utf-8")
    path = tmp_path / "chaincmd.json"
    doc = {
        "contracts": {
            "eth": {
                TOKEN_ADDRESS: {"name": "Token", "abi": "./abi/Token.json", "slots": "./abi/Token.slots.json"},
            },
            "polygon": {
                "0x" + "22" * 20: {"name": "Token", "abi": "./abi/Token.json"},
            },
        }
    }
    path.write_text(json.dumps(doc), encoding="utf-8")
    return path


@pytest.fixture
def app_config(registry_path: Path) -> AppConfig:
    return AppConfig(
        platform="eth",
        chains={"eth": "http://eth.test", "polygon": "http://polygon.test"},
        registry_path=registry_path,
    )


@pytest.fixture
def factory(app_config: AppConfig) -> RecordingFactory:
    return RecordingFactory(app_config)


@pytest.fixture
def context(factory: RecordingFactory) -> ExecutionContext:
    return factory.context()
