"""
Order execution for new exposure.

``open_position`` runs up to three sequential calls:

1. set leverage (only when the intent carries one; best-effort),
2. the primary order,
3. a reduce-only TP/SL algo order on the opposite side (only when a
   trigger price is given).

The calls are not atomic.  A failed leverage change or protective order
is returned as a warning next to the primary order's response; it does
not undo the primary order.  A failed primary order raises, and nothing
after it runs.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from ..errors import ExchangeError, ProxyError, TransportError
from ..models import OpenPositionResult, OrderIntent
from .order_builder import build_leverage_payload, build_order_payload, build_protective_payload

logger = logging.getLogger(__name__)


def _warning(step: str, exc: ProxyError) -> Dict[str, Any]:
    reason = exc.payload if isinstance(exc, ExchangeError) else str(exc)
    return {"warn": f"{step} failed", "kind": type(exc).__name__, "reason": reason}


class OrderExecutor:
    def __init__(self, client) -> None:
        self.client = client

    async def open_position(self, intent: OrderIntent) -> OpenPositionResult:
        order = build_order_payload(
            intent.inst_id,
            intent.side,
            intent.sz,
            ord_type=intent.ord_type,
            td_mode=intent.td_mode,
            px=intent.px,
            pos_side=intent.pos_side,
            cl_ord_id=intent.cl_ord_id,
        )
        protective = None
        if intent.has_trigger:
            protective = build_protective_payload(
                intent.inst_id,
                intent.side,
                intent.sz,
                intent,
                td_mode=intent.td_mode,
                pos_side=intent.pos_side,
            )

        leverage_request = None
        leverage_response = None
        leverage_warning = None
        if intent.lever is not None:
            leverage_request = build_leverage_payload(
                intent.inst_id, intent.lever, intent.td_mode, intent.pos_side
            )
            try:
                leverage_response = await self.client.set_leverage(leverage_request)
            except (ExchangeError, TransportError) as exc:
                # The account may already sit at this leverage; carry on
                logger.warning("set-leverage failed for %s: %s", intent.inst_id, exc)
                leverage_warning = _warning("set-leverage", exc)

        response = await self.client.place_order(order)
        logger.info("Placed %s %s %s on %s", order["ordType"], order["side"], order["sz"], order["instId"])
        result = OpenPositionResult(
            request=order,
            response=response,
            leverage_request=leverage_request,
            leverage_response=leverage_response,
            leverage_warning=leverage_warning,
        )

        if protective is not None:
            result.protective_request = protective
            try:
                result.protective_response = await self.client.place_algo_order(protective)
            except (ExchangeError, TransportError) as exc:
                logger.error(
                    "Protective order failed for %s after primary order was placed: %s", intent.inst_id, exc
                )
                result.protective_warning = _warning("order-algo", exc)
        return result
