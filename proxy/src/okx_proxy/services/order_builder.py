"""
Order payload construction shared by the open, close and protective paths.

All numeric fields are sent to the exchange as plain decimal strings and
optional fields are only included when they carry a value, so every
path derives its payloads the same way.  Protective (TP/SL) payloads are
always reduce-only and always on the side opposite the exposure they
protect.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..errors import IntentValidationError
from ..models import ProtectiveOrder, ProtectivePrices

MARKET_ORD_PX = "-1"

IntentT = TypeVar("IntentT", bound=BaseModel)


def parse_intent(model: Type[IntentT], data: Any) -> IntentT:
    """Validate raw caller input, raising ``IntentValidationError`` on failure."""
    if not isinstance(data, dict):
        raise IntentValidationError("Request body must be a JSON object")
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}" for err in exc.errors()
        )
        raise IntentValidationError(problems) from exc


def to_decimal(value: Any, field: str) -> Decimal:
    try:
        return value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise IntentValidationError(f"{field} must be a number, got {value!r}") from exc


def decimal_str(value: Any) -> str:
    """Format a number as a plain decimal string (no exponent, no trailing zeros)."""
    d = to_decimal(value, "value")
    if d == 0:
        return "0"
    return format(d.normalize(), "f")


def opposite_side(side: str) -> str:
    if side == "buy":
        return "sell"
    if side == "sell":
        return "buy"
    raise IntentValidationError(f"Unknown side {side!r}")


def protective_ord_type(prices: ProtectivePrices) -> str:
    """``oco`` when both legs are given, ``conditional`` for a single leg."""
    if prices.tp_trigger_px is not None and prices.sl_trigger_px is not None:
        return "oco"
    if prices.has_trigger:
        return "conditional"
    raise IntentValidationError("At least one of tpTriggerPx or slTriggerPx is required")


def _positive_size(sz: Any) -> str:
    size = to_decimal(sz, "sz")
    if size <= 0:
        raise IntentValidationError(f"sz must be positive, got {sz}")
    return decimal_str(size)


def build_order_payload(
    inst_id: str,
    side: str,
    sz: Any,
    *,
    ord_type: str = "market",
    td_mode: str = "cross",
    px: Optional[Any] = None,
    pos_side: Optional[str] = None,
    reduce_only: bool = False,
    cl_ord_id: Optional[str] = None,
) -> Dict[str, Any]:
    if not inst_id:
        raise IntentValidationError("instId is required")
    if side not in ("buy", "sell"):
        raise IntentValidationError(f"Unknown side {side!r}")
    payload: Dict[str, Any] = {
        "instId": inst_id,
        "tdMode": td_mode,
        "side": side,
        "ordType": ord_type,
        "sz": _positive_size(sz),
    }
    if px is not None:
        payload["px"] = decimal_str(px)
    if pos_side:
        payload["posSide"] = pos_side
    if reduce_only:
        payload["reduceOnly"] = True
    if cl_ord_id:
        payload["clOrdId"] = cl_ord_id
    return payload


def build_leverage_payload(
    inst_id: str, lever: Any, mgn_mode: str, pos_side: Optional[str] = None
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"instId": inst_id, "lever": decimal_str(lever), "mgnMode": mgn_mode}
    # Isolated margin in long/short mode sets leverage per leg
    if pos_side and pos_side != "net" and mgn_mode == "isolated":
        payload["posSide"] = pos_side
    return payload


def _leg_fields(prices: ProtectivePrices, prefix: str = "") -> Dict[str, str]:
    """Trigger/order price fields; ``prefix`` is ``"new"`` for amendments."""

    def key(name: str) -> str:
        return prefix + name[0].upper() + name[1:] if prefix else name

    fields: Dict[str, str] = {}
    if prices.tp_trigger_px is not None:
        fields[key("tpTriggerPx")] = decimal_str(prices.tp_trigger_px)
        fields[key("tpOrdPx")] = decimal_str(prices.tp_ord_px) if prices.tp_ord_px is not None else MARKET_ORD_PX
        if prices.tp_trigger_px_type:
            fields[key("tpTriggerPxType")] = prices.tp_trigger_px_type
    if prices.sl_trigger_px is not None:
        fields[key("slTriggerPx")] = decimal_str(prices.sl_trigger_px)
        fields[key("slOrdPx")] = decimal_str(prices.sl_ord_px) if prices.sl_ord_px is not None else MARKET_ORD_PX
        if prices.sl_trigger_px_type:
            fields[key("slTriggerPxType")] = prices.sl_trigger_px_type
    return fields


def build_protective_payload(
    inst_id: str,
    exposure_side: str,
    sz: Any,
    prices: ProtectivePrices,
    *,
    td_mode: str = "cross",
    pos_side: Optional[str] = None,
) -> Dict[str, Any]:
    """Build a reduce-only TP/SL algo order protecting ``exposure_side``.

    :param exposure_side: side of the order (or position) being
        protected; the protective order is placed on the other side
    """
    payload: Dict[str, Any] = {
        "instId": inst_id,
        "tdMode": td_mode,
        "side": opposite_side(exposure_side),
        "ordType": protective_ord_type(prices),
        "sz": _positive_size(sz),
        "reduceOnly": True,
    }
    if pos_side:
        payload["posSide"] = pos_side
    payload.update(_leg_fields(prices))
    return payload


def build_amend_payload(order: ProtectiveOrder, sz: Any, prices: ProtectivePrices) -> Dict[str, Any]:
    """Amend ``order`` in place; a leg without a trigger type keeps the pending one."""
    payload: Dict[str, Any] = {
        "instId": order.inst_id,
        "algoId": order.algo_id,
        "newSz": _positive_size(sz),
    }
    payload.update(_leg_fields(prices, prefix="new"))
    if prices.tp_trigger_px is not None and not prices.tp_trigger_px_type and order.tp_trigger_px_type:
        payload["newTpTriggerPxType"] = order.tp_trigger_px_type
    if prices.sl_trigger_px is not None and not prices.sl_trigger_px_type and order.sl_trigger_px_type:
        payload["newSlTriggerPxType"] = order.sl_trigger_px_type
    return payload
