"""
HTTP surface of the proxy.

A small aiohttp application translating JSON requests into service
calls.  Every response is an envelope with an ``ok`` flag; successful
trading calls also carry the constructed outbound ``request`` and the
exchange ``response``, and best-effort steps report ``*Warning`` fields
instead of failing the call.  ``ProxyError`` subclasses are mapped onto
HTTP status codes by ``error_middleware``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from aiohttp import web

from .clients.http_exchange import HttpExchangeClient
from .config import ProxyConfig
from .errors import IntentValidationError, ProxyError
from .models import CloseIntent, OrderIntent, ProtectiveIntent
from .services import (
    AccountService,
    ClosePositionService,
    OrderExecutor,
    PositionOracle,
    ProtectiveOrderReconciler,
)
from .services.order_builder import parse_intent
from .telemetry import record_http_request, render_latest

logger = logging.getLogger(__name__)

SERVICE_NAME = "okx-exec-proxy"

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


@dataclass(frozen=True)
class ProxyServices:
    config: ProxyConfig
    oracle: PositionOracle
    executor: OrderExecutor
    closer: ClosePositionService
    reconciler: ProtectiveOrderReconciler
    account: AccountService

    @classmethod
    def build(cls, config: ProxyConfig, client: Optional[Any] = None) -> "ProxyServices":
        """Wire the services around one exchange client.

        Building the default client raises ``ConfigurationError`` when
        credentials are missing.
        """
        client = client or HttpExchangeClient(config)
        oracle = PositionOracle(client, inst_type=config.inst_type)
        return cls(
            config=config,
            oracle=oracle,
            executor=OrderExecutor(client),
            closer=ClosePositionService(client, oracle),
            reconciler=ProtectiveOrderReconciler(client, oracle),
            account=AccountService(client),
        )


SERVICES = web.AppKey("services", ProxyServices)


@web.middleware
async def logging_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    started = time.monotonic()
    status = 500
    try:
        response = await handler(request)
        status = response.status
        return response
    except web.HTTPException as exc:
        status = exc.status
        raise
    finally:
        route = request.match_info.route.resource.canonical if request.match_info.route.resource else "unmatched"
        record_http_request(route, status)
        logger.info("%s %s -> %d (%.1f ms)", request.method, request.path, status, (time.monotonic() - started) * 1000)


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    try:
        return await handler(request)
    except ProxyError as exc:
        if exc.http_status >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, exc)
        else:
            logger.warning("%s %s rejected: %s", request.method, request.path, exc)
        return web.json_response({"ok": False, **exc.to_dict()}, status=exc.http_status)
    except web.HTTPException:
        raise
    except Exception as exc:
        logger.exception("%s %s crashed", request.method, request.path)
        return web.json_response(
            {"ok": False, "error": "Internal error", "kind": type(exc).__name__}, status=500
        )


async def _body(request: web.Request) -> Dict[str, Any]:
    if not request.can_read_body:
        return {}
    try:
        data = await request.json()
    except ValueError as exc:
        raise IntentValidationError("Request body is not valid JSON") from exc
    if not isinstance(data, dict):
        raise IntentValidationError("Request body must be a JSON object")
    return data


async def ping(request: web.Request) -> web.Response:
    return web.json_response({"ok": True, "service": SERVICE_NAME})


async def debug_env(request: web.Request) -> web.Response:
    return web.json_response({"ok": True, **request.app[SERVICES].config.credential_status()})


async def positions(request: web.Request) -> web.Response:
    data = await _body(request)
    inst_id = data.get("instId")
    if not inst_id:
        raise IntentValidationError("instId required")
    position = await request.app[SERVICES].oracle.net_position(inst_id, data.get("instType"))
    return web.json_response({"ok": True, **position.to_dict(), "raw": position.rows})


async def place_order(request: web.Request) -> web.Response:
    intent = parse_intent(OrderIntent, await _body(request))
    result = await request.app[SERVICES].executor.open_position(intent)
    return web.json_response(result.to_envelope())


async def close_position(request: web.Request) -> web.Response:
    intent = parse_intent(CloseIntent, await _body(request))
    result = await request.app[SERVICES].closer.close_position(
        intent.inst_id,
        all=intent.all,
        size=intent.sz,
        td_mode=intent.td_mode,
        pos_side=intent.pos_side,
    )
    return web.json_response(result.to_envelope())


async def balance(request: web.Request) -> web.Response:
    result = await request.app[SERVICES].account.balance(request.query.get("ccy"))
    return web.json_response(result)


async def set_protective(request: web.Request) -> web.Response:
    intent = parse_intent(ProtectiveIntent, await _body(request))
    result = await request.app[SERVICES].reconciler.set_protective(intent)
    return web.json_response(result.to_envelope())


async def metrics(request: web.Request) -> web.Response:
    payload, content_type = render_latest()
    return web.Response(body=payload, headers={"Content-Type": content_type})


def create_app(config: ProxyConfig, client: Optional[Any] = None) -> web.Application:
    app = web.Application(middlewares=[logging_middleware, error_middleware], client_max_size=256 * 1024)
    app[SERVICES] = ProxyServices.build(config, client)
    app.router.add_get("/ping", ping)
    app.router.add_get("/debug/env", debug_env)
    app.router.add_post("/positions", positions)
    app.router.add_post("/order", place_order)
    app.router.add_post("/close", close_position)
    app.router.add_get("/balance", balance)
    app.router.add_post("/protective", set_protective)
    app.router.add_post("/amend-tpsl", set_protective)
    app.router.add_get("/metrics", metrics)
    return app
