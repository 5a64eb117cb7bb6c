"""
HTTP exchange client with request signing.

This module defines a lightweight asynchronous client for the OKX v5
REST API.  Every private call is signed by ``OkxSigner`` with a freshly
generated timestamp; when ``use_server_time`` is enabled the timestamp
comes from the exchange's public clock endpoint so that local clock skew
cannot get requests rejected.

The body is serialized once and the query string is encoded once; the
same strings are signed and transmitted (the URL is handed to aiohttp as
already encoded so it is not re-quoted on the way out).

Signed calls are never retried here.  Placing an order twice is worse
than reporting a failure, and retry policy belongs to the caller.  Only
the unsigned, read-only server time lookup is retried.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlencode

import aiohttp
from aiohttp import ClientResponse
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential
from yarl import URL

from ..config import ProxyConfig
from ..errors import ExchangeError, ProxyError, TransportError
from ..telemetry import record_exchange_call
from .auth_providers import OkxSigner, iso_timestamp

logger = logging.getLogger(__name__)

SERVER_TIME_PATH = "/api/v5/public/time"


def build_path(path: str, params: Optional[Dict[str, Any]] = None) -> str:
    """Append an encoded query string, dropping parameters that are None."""
    query = {k: v for k, v in (params or {}).items() if v is not None}
    if not query:
        return path
    return f"{path}?{urlencode(query, safe=',')}"


def serialize_body(payload: Any) -> str:
    if payload is None:
        return ""
    return json.dumps(payload, separators=(",", ":"))


class HttpExchangeClient:
    """Asynchronous OKX REST client executing one signed call at a time."""

    def __init__(self, config: ProxyConfig, signer: Optional[OkxSigner] = None) -> None:
        """Construct the HTTP client.

        Args:
            config: Immutable process configuration (base URL, timeout,
                paper flag, server time preference).
            signer: Optional pre-built signer.  When omitted one is built
                from ``config``, which raises ``ConfigurationError`` if any
                credential is missing.
        """
        self.config = config
        self.signer = signer or OkxSigner.from_config(config)
        self.base_url = config.base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=config.timeout)

    async def timestamp(self) -> str:
        """Return the timestamp for the next signed call."""
        if not self.config.use_server_time:
            return iso_timestamp()
        try:
            return await self._server_timestamp()
        except ProxyError as exc:
            logger.warning("Server time unavailable, signing with local clock: %s", exc)
            return iso_timestamp()

    @retry(
        retry=retry_if_exception_type(TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(min=0.2, max=2),
        reraise=True,
    )
    async def _server_timestamp(self) -> str:
        data = await self._send("GET", SERVER_TIME_PATH, headers={})
        try:
            return iso_timestamp(int(data["data"][0]["ts"]))
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise TransportError(f"Malformed server time response: {data!r}"[:200]) from exc

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        payload: Any = None,
    ) -> Dict[str, Any]:
        """Sign and execute one call, returning the decoded exchange response."""
        method = method.upper()
        full_path = build_path(path, params)
        body = "" if method == "GET" else serialize_body(payload)
        signed = self.signer.sign_request(await self.timestamp(), method, full_path, body)
        try:
            data = await self._send(method, full_path, headers=self.signer.headers(signed), body=body)
        except ExchangeError:
            record_exchange_call(method, full_path, "exchange_error")
            raise
        except TransportError:
            record_exchange_call(method, full_path, "transport_error")
            raise
        record_exchange_call(method, full_path, "ok")
        return data

    async def _send(self, method: str, path: str, *, headers: Dict[str, str], body: str = "") -> Dict[str, Any]:
        url = URL(f"{self.base_url}{path}", encoded=True)
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.request(
                    method, url, headers=headers, data=body.encode() if body else None
                ) as resp:
                    return await self._handle_response(resp, method, path)
        except asyncio.TimeoutError as exc:
            logger.error("Timeout calling %s %s", method, path)
            raise TransportError(f"Timeout calling {method} {path}", timeout=True) from exc
        except aiohttp.ClientError as exc:
            logger.error("Transport error calling %s %s: %s", method, path, exc)
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc

    @staticmethod
    async def _handle_response(resp: ClientResponse, method: str, path: str) -> Dict[str, Any]:
        text = await resp.text()
        try:
            data = json.loads(text) if text else None
        except ValueError:
            data = None
        if not isinstance(data, dict):
            # Avoid logging full response bodies; truncate to prevent leakage
            logger.error("Undecodable response %s from %s %s: %s", resp.status, method, path, text[:200])
            raise TransportError(f"Undecodable response (HTTP {resp.status}) from {method} {path}")
        code = str(data.get("code", ""))
        if resp.status >= 400 or code != "0":
            msg = str(data.get("msg") or "")
            rows = data.get("data")
            if not msg and isinstance(rows, list) and rows and isinstance(rows[0], dict):
                msg = str(rows[0].get("sMsg") or "")
            logger.error("REST API error %s code=%s on %s %s: %s", resp.status, code, method, path, msg[:200])
            raise ExchangeError(code or str(resp.status), msg, http_status=resp.status, payload=data)
        return data

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, payload: Any) -> Dict[str, Any]:
        return await self.request("POST", path, payload=payload)

    # Convenience methods for the endpoints the services use
    async def get_positions(self, inst_id: str, inst_type: str = "SWAP") -> Dict[str, Any]:
        return await self.get("/api/v5/account/positions", {"instType": inst_type, "instId": inst_id})

    async def get_balance(self, ccy: Optional[str] = None) -> Dict[str, Any]:
        return await self.get("/api/v5/account/balance", {"ccy": ccy})

    async def set_leverage(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.post("/api/v5/account/set-leverage", payload)

    async def place_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.post("/api/v5/trade/order", payload)

    async def place_algo_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.post("/api/v5/trade/order-algo", payload)

    async def list_pending_algos(
        self, inst_id: str, ord_types: Iterable[str] = ("conditional", "oco")
    ) -> Dict[str, Any]:
        return await self.get(
            "/api/v5/trade/orders-algo-pending",
            {"ordType": ",".join(ord_types), "instId": inst_id},
        )

    async def cancel_algos(self, items: List[Dict[str, str]]) -> Dict[str, Any]:
        return await self.post("/api/v5/trade/cancel-algos", items)

    async def amend_algo(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.post("/api/v5/trade/amend-algos", payload)
