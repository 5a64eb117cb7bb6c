"""Flatten or reduce a live position with a reduce-only market order."""

from __future__ import annotations

import logging
from typing import Any, Optional

from ..errors import IntentValidationError
from ..models import CloseResult
from .order_builder import build_order_payload, to_decimal
from .position_oracle import leg_position

logger = logging.getLogger(__name__)


class ClosePositionService:
    def __init__(self, client, oracle) -> None:
        self.client = client
        self.oracle = oracle

    async def close_position(
        self,
        inst_id: str,
        *,
        all: bool = False,
        size: Optional[Any] = None,
        td_mode: Optional[str] = None,
        pos_side: Optional[str] = None,
    ) -> CloseResult:
        """Close ``size`` (or the whole position) of ``inst_id``.

        The side is always inferred from the live net position: a net long
        is closed with a sell, a net short with a buy.  A flat instrument is
        a no-op, not an error.  The caller's size is only checked for
        positivity; the exchange enforces the rest.  Without ``td_mode`` the
        order uses the margin mode of the position it closes.
        """
        if not inst_id:
            raise IntentValidationError("instId is required")
        if size is not None and not all and to_decimal(size, "sz") <= 0:
            raise IntentValidationError(f"sz must be positive, got {size}")

        position = leg_position(await self.oracle.net_position(inst_id), pos_side)
        if position.is_flat:
            logger.info("Close requested for %s but position is flat", inst_id)
            return CloseResult(noop=True, msg="No open position", position=position)

        close_size = abs(position.size) if all or size is None else to_decimal(size, "sz")
        order = build_order_payload(
            inst_id,
            position.close_side,
            close_size,
            ord_type="market",
            td_mode=td_mode or position.mgn_mode or "cross",
            pos_side=pos_side,
            reduce_only=True,
        )
        response = await self.client.place_order(order)
        logger.info("Closed %s %s of %s (net %s)", order["side"], order["sz"], inst_id, position.size)
        return CloseResult(position=position, request=order, response=response)
