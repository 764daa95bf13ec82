# -*- coding: utf-8 -*-
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from chaincmd.apps.api import create_app
from chaincmd.commands import get_commands
from chaincmd.core.commands import ApiMeta, ArgumentSpec, CommandNode, ParamSpec
from chaincmd.core.errors import RouteCompilationError
from tests.conftest import TX_HASH


async def _echo(args, params, context, node):
    return {"args": list(args), "params": params, "platform": context.platform, "env": context.env}


async def _fail(args, params, context, node):
    raise RuntimeError("node exploded")


ECHO = CommandNode(
    "contract, c",
    subcommands=(
        CommandNode(
            "read",
            arguments=(ArgumentSpec(), ArgumentSpec()),
            params=(ParamSpec.parse("--block", type="number"),),
            api=ApiMeta("get"),
            handler=_echo,
        ),
        CommandNode("write", arguments=(ArgumentSpec(),), api=ApiMeta("post"), handler=_echo),
        CommandNode("fail", api=ApiMeta("get"), handler=_fail),
    ),
)


@pytest.fixture
def echo_client(context) -> TestClient:
    return TestClient(create_app([ECHO], context, gzip_minimum_size=0))


@pytest.fixture
def api(context) -> TestClient:
    return TestClient(create_app(get_commands(), context))


def test_path_and_query_reach_the_handler(echo_client):
    resp = echo_client.get("/api/c/read/Token/balanceOf", params={"owner": "0xabc", "block": "12"})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/json")
    assert resp.json() == {
        "args": ["Token", "balanceOf"],
        "params": {"owner": "0xabc", "block": 12},
        "platform": "eth",
        "env": "api",
    }


def test_aliases_serve_the_same_handler(echo_client):
    a = echo_client.get("/api/contract/read/T/m").json()
    b = echo_client.get("/api/c/read/T/m").json()
    assert a == b


def test_body_overrides_query(echo_client):
    resp = echo_client.post("/api/contract/write/T?amount=1", json={"amount": 2})
    assert resp.status_code == 200
    assert resp.json()["params"] == {"amount": 2}


def test_non_object_body_is_a_bad_request(echo_client):
    resp = echo_client.post("/api/contract/write/T", json=[1, 2])
    assert resp.status_code == 400
    assert "JSON object" in resp.json()["error"]


def test_invalid_json_body(echo_client):
    resp = echo_client.post(
        "/api/contract/write/T",
        content=b"{not json",
        headers={"content-type": "application/json"},
    )
    assert resp.status_code == 400


def test_handler_failure_maps_to_500(echo_client):
    resp = echo_client.get("/api/c/fail")
    assert resp.status_code == 500
    assert resp.json() == {"error": "node exploded", "command": "contract fail"}


def test_bad_parameter_maps_to_400(echo_client):
    resp = echo_client.get("/api/c/read/T/m", params={"block": "latest"})
    assert resp.status_code == 400
    assert resp.json()["command"] == "contract read"


def test_unknown_path_is_404(echo_client):
    resp = echo_client.get("/api/contract/deploy")
    assert resp.status_code == 404
    assert "error" in resp.json()


def test_chain_query_switches_platform_per_request(echo_client, context, factory):
    resp = echo_client.get("/api/c/read/T/m", params={"chain": "polygon"})
    assert resp.json()["platform"] == "polygon"
    derived = factory.created[-1]
    assert derived.platform == "polygon"
    assert derived.closed
    # default context untouched
    assert not context.client.closed
    assert echo_client.get("/api/c/read/T/m").json()["platform"] == "eth"


def test_unknown_chain_is_a_bad_request(echo_client):
    resp = echo_client.get("/api/c/read/T/m", params={"chain": "solana"})
    assert resp.status_code == 400


def test_routes_listing(echo_client):
    rows = echo_client.get("/routes").json()
    assert {"method": "POST", "path": "/api/c/write/:arg0", "command": "contract write", "description": ""} in rows
    assert len(rows) == 6


def test_healthz(echo_client):
    assert echo_client.get("/healthz").json() == {"ok": True, "platform": "eth"}


def test_custom_prefix(context):
    client = TestClient(create_app([ECHO], context, api_prefix="v1/"))
    assert client.get("/v1/c/read/T/m").status_code == 200


def test_route_collision_fails_before_serving(context):
    a = CommandNode("contract, c", subcommands=(CommandNode("x", api=ApiMeta(), handler=_echo),))
    b = CommandNode("c", subcommands=(CommandNode("x", api=ApiMeta(), handler=_echo),))
    with pytest.raises(RouteCompilationError):
        create_app([a, b], context)


def test_tx_send_returns_hash_without_waiting(api, context):
    resp = api.post("/api/tx/send", json={"raw": "0xf86c"})
    assert resp.status_code == 200
    assert resp.json() == {"hash": TX_HASH}
    assert context.client.sent == ["0xf86c"]
    assert context.client.waited == []


def test_tx_send_requires_raw(api):
    resp = api.post("/api/tx/send")
    assert resp.status_code == 400
    assert resp.json()["command"] == "tx send"


def test_rpc_over_http(api, context):
    resp = api.get("/api/rpc/eth_blockNumber")
    assert resp.json() == {"method": "eth_blockNumber", "params": []}


def test_block_dates_over_http(api):
    resp = api.get("/api/block/dates", params={"from": "100", "to": "300"})
    assert resp.status_code == 200
    assert list(resp.json()) == ["100", "300"]


def test_contract_abi_over_http(api):
    resp = api.get("/api/c/abi/Token", params={"chain": "polygon"})
    assert resp.status_code == 200
    assert resp.json()["platform"] == "polygon"


def test_lifespan_closes_default_context(context):
    with TestClient(create_app([ECHO], context)) as client:
        assert client.get("/healthz").status_code == 200
    assert context.client.closed


def test_logs_never_write_files_over_http(api, context, tmp_path):
    context.client.event_logs["Transfer"] = [
        {"blockNumber": 100, "transactionHash": b"\xaa", "event": "Transfer", "args": {"from": "0xa", "to": "0xb", "value": 1}},
    ]
    target = tmp_path / "elsewhere" / "report.json"
    resp = api.get("/api/c/logs/Token/Transfer", params={"output": str(target)})
    assert resp.status_code == 400
    assert resp.json()["command"] == "contract logs"
    assert not target.exists()
    assert not target.parent.exists()


def test_logs_over_http_return_rows_with_dates(api, context):
    context.client.event_logs["Transfer"] = [
        {"blockNumber": 100, "transactionHash": b"\xaa", "event": "Transfer", "args": {"from": "0xa", "to": "0xb", "value": 1}},
    ]
    resp = api.get("/api/contract/logs/Token/Transfer", params={"from": "0xa"})
    assert resp.status_code == 200
    [row] = resp.json()
    assert row["block"]["number"] == 100
    assert row["block"]["date"].startswith("2020-09-13")
    assert row["transactionHash"] == "0xaa"
    assert context.client.log_queries[-1][1]["argument_filters"] == {"from": "0xa"}
