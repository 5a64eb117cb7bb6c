"""Tests for the signed HTTP client against an in-process fake exchange.

The fake verifies every signature against the raw path and body it
received, so a passing call proves that what was signed is exactly
what went over the wire.
"""

from __future__ import annotations

import json

import pytest  # type: ignore
from aiohttp.test_utils import TestServer

from okx_proxy.clients.http_exchange import HttpExchangeClient, build_path, serialize_body
from okx_proxy.config import ProxyConfig
from okx_proxy.errors import ExchangeError, TransportError
from tests.helpers.fake_exchange import RECORDED, build_fake_okx_app, ok


def make_client(server: TestServer, **overrides) -> HttpExchangeClient:
    settings = dict(
        api_key="key",
        secret_key="secret",
        passphrase="pass",
        base_url=f"http://{server.host}:{server.port}",
        use_server_time=False,
        timeout=5.0,
    )
    settings.update(overrides)
    return HttpExchangeClient(ProxyConfig(**settings))


def test_build_path_encodes_once_and_keeps_commas() -> None:
    assert build_path("/api/v5/x") == "/api/v5/x"
    assert build_path("/api/v5/x", {"a": "1", "b": None}) == "/api/v5/x?a=1"
    assert build_path("/p", {"ordType": "conditional,oco"}) == "/p?ordType=conditional,oco"


def test_serialize_body_is_compact() -> None:
    assert serialize_body(None) == ""
    assert serialize_body({"a": "1", "b": True}) == '{"a":"1","b":true}'
    assert serialize_body([{"algoId": "1"}]) == '[{"algoId":"1"}]'


@pytest.mark.asyncio  # type: ignore
async def test_get_signs_path_with_query_and_empty_body() -> None:
    rows = [{"instId": "BTC-USDT-SWAP", "pos": "2", "posSide": "net"}]
    app = build_fake_okx_app("secret", {"/api/v5/account/positions": (200, ok(rows))})
    async with TestServer(app) as server:
        client = make_client(server)
        data = await client.get_positions("BTC-USDT-SWAP")
    assert data["data"] == rows
    (req,) = app[RECORDED]
    assert req.method == "GET"
    assert req.path_qs == "/api/v5/account/positions?instType=SWAP&instId=BTC-USDT-SWAP"
    assert req.body == ""
    assert req.headers["OK-ACCESS-KEY"] == "key"
    assert req.headers["OK-ACCESS-PASSPHRASE"] == "pass"
    assert "x-simulated-trading" not in req.headers


@pytest.mark.asyncio  # type: ignore
async def test_post_transmits_exactly_the_signed_body() -> None:
    app = build_fake_okx_app("secret", {"/api/v5/trade/order": (200, ok([{"ordId": "42", "sCode": "0"}]))})
    payload = {"instId": "BTC-USDT-SWAP", "tdMode": "cross", "side": "buy", "ordType": "market", "sz": "1"}
    async with TestServer(app) as server:
        client = make_client(server, paper=True)
        data = await client.place_order(payload)
    assert data["data"][0]["ordId"] == "42"
    (req,) = app[RECORDED]
    assert req.body == serialize_body(payload)
    assert json.loads(req.body) == payload
    assert req.headers["x-simulated-trading"] == "1"


@pytest.mark.asyncio  # type: ignore
async def test_pending_algo_query_with_comma_is_accepted() -> None:
    app = build_fake_okx_app("secret")
    async with TestServer(app) as server:
        client = make_client(server)
        await client.list_pending_algos("ETH-USDT-SWAP")
    (req,) = app[RECORDED]
    assert req.path_qs == "/api/v5/trade/orders-algo-pending?ordType=conditional,oco&instId=ETH-USDT-SWAP"


@pytest.mark.asyncio  # type: ignore
async def test_server_time_is_used_for_the_timestamp() -> None:
    app = build_fake_okx_app("secret", server_ts="1700000000123")
    async with TestServer(app) as server:
        client = make_client(server, use_server_time=True)
        await client.get_balance("USDT")
    (req,) = app[RECORDED]
    assert req.headers["OK-ACCESS-TIMESTAMP"] == "2023-11-14T22:13:20.123Z"
    assert req.path_qs == "/api/v5/account/balance?ccy=USDT"


@pytest.mark.asyncio  # type: ignore
async def test_each_call_gets_a_fresh_signature() -> None:
    app = build_fake_okx_app("secret")
    async with TestServer(app) as server:
        client = make_client(server)
        await client.place_order({"instId": "X", "sz": "1"})
        await client.place_order({"instId": "X", "sz": "2"})
    first, second = app[RECORDED]
    assert first.headers["OK-ACCESS-SIGN"] != second.headers["OK-ACCESS-SIGN"]


@pytest.mark.asyncio  # type: ignore
async def test_exchange_rejection_is_propagated_verbatim() -> None:
    rejection = {
        "code": "1",
        "msg": "",
        "data": [{"ordId": "", "sCode": "51008", "sMsg": "Order failed. Insufficient margin."}],
    }
    app = build_fake_okx_app("secret", {"/api/v5/trade/order": (200, rejection)})
    async with TestServer(app) as server:
        client = make_client(server)
        with pytest.raises(ExchangeError) as excinfo:
            await client.place_order({"instId": "X", "sz": "1"})
    err = excinfo.value
    assert err.code == "1"
    assert err.msg == "Order failed. Insufficient margin."
    assert err.payload == rejection
    assert err.http_status == 502


@pytest.mark.asyncio  # type: ignore
async def test_bad_signature_mirrors_http_status() -> None:
    app = build_fake_okx_app("other-secret")
    async with TestServer(app) as server:
        client = make_client(server)
        with pytest.raises(ExchangeError) as excinfo:
            await client.get_balance()
    assert excinfo.value.code == "50113"
    assert excinfo.value.http_status == 401


@pytest.mark.asyncio  # type: ignore
async def test_non_json_response_is_a_transport_error() -> None:
    app = build_fake_okx_app("secret", {"/api/v5/account/balance": (502, "<html>Bad gateway</html>")})
    async with TestServer(app) as server:
        client = make_client(server)
        with pytest.raises(TransportError):
            await client.get_balance()


@pytest.mark.asyncio  # type: ignore
async def test_connection_failure_is_a_transport_error() -> None:
    client = HttpExchangeClient(
        ProxyConfig(
            api_key="key",
            secret_key="secret",
            passphrase="pass",
            base_url="http://127.0.0.1:1",
            use_server_time=False,
            timeout=2.0,
        )
    )
    with pytest.raises(TransportError) as excinfo:
        await client.get_balance()
    assert not isinstance(excinfo.value, ExchangeError)
    assert excinfo.value.http_status == 502
