"""
Live net position lookup.

The exchange returns one row per position: a single ``posSide="net"``
row in net mode, and separate ``long``/``short`` rows in long/short
(hedge) mode.  Hedge-mode rows report ``pos`` as a quantity, so the
sign is taken from ``posSide``; net-mode rows are already signed.
Summing the signed rows gives the same answer in both account modes.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable

from ..models import NetPosition

logger = logging.getLogger(__name__)


def signed_row_size(row: Dict[str, Any]) -> Decimal:
    raw = row.get("pos")
    if raw in (None, ""):
        return Decimal(0)
    try:
        pos = Decimal(str(raw))
    except InvalidOperation:
        logger.warning("Ignoring position row with unparsable pos=%r", raw)
        return Decimal(0)
    pos_side = (row.get("posSide") or "net").lower()
    if pos_side == "long":
        return abs(pos)
    if pos_side == "short":
        return -abs(pos)
    return pos


def net_from_rows(inst_id: str, rows: Iterable[Dict[str, Any]]) -> NetPosition:
    rows = [r for r in rows if isinstance(r, dict) and (not r.get("instId") or r.get("instId") == inst_id)]
    net = Decimal(0)
    mgn_mode = None
    for row in rows:
        size = signed_row_size(row)
        net += size
        if size != 0 and mgn_mode is None:
            mgn_mode = row.get("mgnMode") or None
    return NetPosition(inst_id=inst_id, size=net, mgn_mode=mgn_mode, rows=rows)


def leg_position(position: NetPosition, pos_side: str | None) -> NetPosition:
    """Restrict a hedge-mode position to one leg when ``pos_side`` names it."""
    if pos_side not in ("long", "short"):
        return position
    return net_from_rows(position.inst_id, [r for r in position.rows if r.get("posSide") == pos_side])


class PositionOracle:
    """Query the exchange for an instrument's rows and net them."""

    def __init__(self, client, inst_type: str = "SWAP") -> None:
        self.client = client
        self.inst_type = inst_type

    async def net_position(self, inst_id: str, inst_type: str | None = None) -> NetPosition:
        response = await self.client.get_positions(inst_id, inst_type or self.inst_type)
        position = net_from_rows(inst_id, response.get("data") or [])
        logger.info("Net position %s: %s (%d rows)", inst_id, position.size, len(position.rows))
        return position
