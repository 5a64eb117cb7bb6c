"""
Take-profit / stop-loss reconciliation for an open position.

A protective order is ``absent`` until placed, ``pending`` while it waits
for its trigger, and ``absent`` again once it fires, is cancelled or
expires.  Reconciling replaces whatever is pending with a new order
sized to the current net exposure, in two separate calls:

1. cancel every pending ``conditional``/``oco`` order for the instrument
   (one batched call; skipped when nothing is pending),
2. place the new reduce-only order on the side that closes the position.

Between the two calls the position is unprotected, and if the second
call fails it stays that way; the error is raised to the caller.  When
``amend`` is requested and exactly one pending order of the same type,
side and leg exists, it is amended by id instead and nothing is cancelled.
With ``posSide=long|short`` only that hedge leg's orders are touched.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..errors import FlatPositionError
from ..models import ProtectiveIntent, ProtectiveOrder, ProtectiveResult
from .order_builder import (
    build_amend_payload,
    build_protective_payload,
    opposite_side,
    protective_ord_type,
)
from .position_oracle import leg_position

logger = logging.getLogger(__name__)

PROTECTIVE_ORD_TYPES = ("conditional", "oco")


def _algo_ids(response: Any) -> List[str]:
    rows = response.get("data") if isinstance(response, dict) else None
    return [str(r["algoId"]) for r in rows or [] if isinstance(r, dict) and r.get("algoId")]


def _amendable(order: ProtectiveOrder, payload: Dict[str, Any]) -> bool:
    """An order can be amended only if it already protects the same exposure."""
    if order.ord_type != payload["ordType"] or order.side != payload["side"]:
        return False
    return order.pos_side in (None, "net") or order.pos_side == payload.get("posSide")


class ProtectiveOrderReconciler:
    def __init__(self, client, oracle) -> None:
        self.client = client
        self.oracle = oracle

    async def pending_orders(self, inst_id: str, pos_side: Optional[str] = None) -> List[ProtectiveOrder]:
        """Pending protective orders for ``inst_id``, restricted to one hedge leg when named."""
        response = await self.client.list_pending_algos(inst_id, PROTECTIVE_ORD_TYPES)
        orders = [ProtectiveOrder.from_row(r) for r in response.get("data") or [] if isinstance(r, dict)]
        orders = [o for o in orders if o.inst_id == inst_id and o.ord_type in PROTECTIVE_ORD_TYPES and o.algo_id]
        if pos_side in ("long", "short"):
            orders = [o for o in orders if o.pos_side == pos_side]
        return orders

    async def set_protective(self, intent: ProtectiveIntent) -> ProtectiveResult:
        # Raises before any exchange call when neither trigger is given
        protective_ord_type(intent)

        position = leg_position(await self.oracle.net_position(intent.inst_id), intent.pos_side)
        if position.is_flat:
            raise FlatPositionError(intent.inst_id)
        size = abs(position.size)
        payload = build_protective_payload(
            intent.inst_id,
            opposite_side(position.close_side),
            size,
            intent,
            td_mode=intent.td_mode or position.mgn_mode or "cross",
            pos_side=intent.pos_side,
        )
        result = ProtectiveResult(position=position)

        pending: List[ProtectiveOrder] = []
        if intent.cancel_existing or intent.amend:
            pending = await self.pending_orders(intent.inst_id, intent.pos_side)

        if intent.amend and len(pending) == 1 and _amendable(pending[0], payload):
            amend = build_amend_payload(pending[0], size, intent)
            result.request = amend
            result.response = await self.client.amend_algo(amend)
            result.amended = pending[0].algo_id
            logger.info("Amended protective order %s on %s", pending[0].algo_id, intent.inst_id)
            return result

        if intent.cancel_existing and pending:
            cancel = [{"algoId": o.algo_id, "instId": o.inst_id} for o in pending]
            result.cancel_request = cancel
            result.cancel_response = await self.client.cancel_algos(cancel)
            result.cancelled = [o.algo_id for o in pending]
            logger.info("Cancelled %d protective orders on %s", len(cancel), intent.inst_id)

        result.request = payload
        result.response = await self.client.place_algo_order(payload)
        result.created = _algo_ids(result.response)
        logger.info(
            "Placed %s protective %s %s on %s", payload["ordType"], payload["side"], payload["sz"], intent.inst_id
        )
        return result
