# -*- coding: utf-8 -*-
from __future__ import annotations

import pytest

from chaincmd.core.chain_client import RpcMethods
from chaincmd.core.errors import InvalidArgumentError
from chaincmd.core.rpc import RpcService, parse_rpc_args


def test_typed_and_detected_arguments():
    out = parse_rpc_args(["uint256:10", "boolean:true", "bool:0", "123", "FALSE", "latest", "0xabc"])
    assert out == ["0xa", True, False, "0x7b", False, "latest", "0xabc"]


def test_hex_integers_are_normalized():
    assert parse_rpc_args(["uint:0x10"]) == ["0x10"]
    assert parse_rpc_args(["int256:-1"]) == ["-0x1"]


def test_urls_and_untyped_strings_pass_through():
    assert parse_rpc_args(["https://example.org", "address:0x" + "aa" * 20]) == [
        "https://example.org",
        "0x" + "aa" * 20,
    ]


def test_non_strings_pass_through():
    assert parse_rpc_args([5, {"to": "0x1"}]) == [5, {"to": "0x1"}]


@pytest.mark.parametrize("raw", ["boolean:maybe", "uint256:ten"])
def test_invalid_typed_values(raw):
    with pytest.raises(InvalidArgumentError):
        parse_rpc_args([raw])


@pytest.mark.anyio
async def test_methods_are_registered_on_first_use():
    calls = []

    async def request(method, params):
        calls.append((method, params))
        return "0x1"

    table = RpcMethods(request)
    assert "anvil_mine" not in table
    assert await table.call("anvil_mine", "0x2") == "0x1"
    assert "anvil_mine" in table
    assert calls == [("anvil_mine", ["0x2"])]


@pytest.mark.anyio
async def test_registered_override_wins():
    async def request(method, params):
        raise AssertionError("not expected")

    async def chain_id():
        return "0x89"

    table = RpcMethods(request)
    table.register("eth_chainId", chain_id)
    assert await table.call("eth_chainId") == "0x89"


@pytest.mark.anyio
async def test_service_calls_the_client(context):
    result = await RpcService().process(["eth_getBalance", "0xabc", "latest"], {}, context)
    assert result == {"method": "eth_getBalance", "params": ["0xabc", "latest"]}
    assert context.client.rpc_calls == [("eth_getBalance", ["0xabc", "latest"])]


@pytest.mark.anyio
async def test_service_requires_a_method(context):
    with pytest.raises(InvalidArgumentError):
        await RpcService().process([], {}, context)
