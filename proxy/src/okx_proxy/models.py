"""
Domain models for the execution proxy.

Caller intents are Pydantic models so that the HTTP layer gets
validation and camelCase aliases (the exchange's own field names) for
free.  Everything derived from the exchange (positions, pending
protective orders) and every result handed back to callers is a plain
dataclass; none of it outlives the request that produced it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

Side = Literal["buy", "sell"]
TriggerPxType = Literal["last", "mark", "index"]

# Primary order types; protective legs are always "conditional" or "oco"
PRICED_ORDER_TYPES = ("limit", "post_only", "fok", "ioc")


class _Intent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class ProtectivePrices(_Intent):
    """Trigger and order prices for the take-profit and stop-loss legs.

    An order price of ``-1`` means the leg fills at market once triggered,
    which is also what happens when the order price is omitted.
    """

    tp_trigger_px: Optional[Decimal] = Field(None, alias="tpTriggerPx", gt=0)
    tp_ord_px: Optional[Decimal] = Field(None, alias="tpOrdPx")
    sl_trigger_px: Optional[Decimal] = Field(None, alias="slTriggerPx", gt=0)
    sl_ord_px: Optional[Decimal] = Field(None, alias="slOrdPx")
    tp_trigger_px_type: Optional[TriggerPxType] = Field(None, alias="tpTriggerPxType")
    sl_trigger_px_type: Optional[TriggerPxType] = Field(None, alias="slTriggerPxType")

    @property
    def has_trigger(self) -> bool:
        return self.tp_trigger_px is not None or self.sl_trigger_px is not None


class OrderIntent(ProtectivePrices):
    """Request to open (or add to) a position."""

    inst_id: str = Field(..., alias="instId", min_length=1)
    side: Side
    sz: Decimal = Field(..., gt=0, description="Order size in contracts")
    ord_type: Literal["market", "limit", "post_only", "fok", "ioc"] = Field("market", alias="ordType")
    td_mode: Literal["cross", "isolated", "cash"] = Field("cross", alias="tdMode")
    px: Optional[Decimal] = Field(None, gt=0)
    lever: Optional[Decimal] = Field(None, gt=0)
    pos_side: Optional[Literal["long", "short", "net"]] = Field(None, alias="posSide")
    cl_ord_id: Optional[str] = Field(None, alias="clOrdId", max_length=32)

    @model_validator(mode="after")
    def _price_for_priced_orders(self) -> "OrderIntent":
        if self.ord_type in PRICED_ORDER_TYPES and self.px is None:
            raise ValueError(f"px is required for ordType={self.ord_type}")
        return self


class CloseIntent(_Intent):
    inst_id: str = Field(..., alias="instId", min_length=1)
    all: bool = False
    sz: Optional[Decimal] = None
    td_mode: Optional[Literal["cross", "isolated", "cash"]] = Field(None, alias="tdMode")
    pos_side: Optional[Literal["long", "short", "net"]] = Field(None, alias="posSide")


class ProtectiveIntent(ProtectivePrices):
    inst_id: str = Field(..., alias="instId", min_length=1)
    cancel_existing: bool = Field(True, alias="cancelExisting")
    amend: bool = False
    td_mode: Optional[Literal["cross", "isolated", "cash"]] = Field(None, alias="tdMode")
    pos_side: Optional[Literal["long", "short", "net"]] = Field(None, alias="posSide")


@dataclass(frozen=True)
class SignedRequest:
    """One signed outbound call; valid for exactly these four values."""

    timestamp: str
    method: str
    path: str
    body: str
    signature: str


@dataclass
class NetPosition:
    inst_id: str
    size: Decimal
    mgn_mode: Optional[str] = None
    rows: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_flat(self) -> bool:
        return self.size == 0

    @property
    def close_side(self) -> Optional[str]:
        """Side of the order that flattens this position."""
        if self.size > 0:
            return "sell"
        if self.size < 0:
            return "buy"
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "instId": self.inst_id,
            "open": not self.is_flat,
            "netPosSz": str(self.size),
            "mgnMode": self.mgn_mode,
        }


@dataclass
class ProtectiveOrder:
    """A pending conditional or OCO algo order as listed by the exchange."""

    algo_id: str
    inst_id: str
    ord_type: str
    side: Optional[str] = None
    pos_side: Optional[str] = None
    sz: Optional[str] = None
    tp_trigger_px: Optional[str] = None
    tp_ord_px: Optional[str] = None
    sl_trigger_px: Optional[str] = None
    sl_ord_px: Optional[str] = None
    tp_trigger_px_type: Optional[str] = None
    sl_trigger_px_type: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ProtectiveOrder":
        return cls(
            algo_id=str(row.get("algoId", "")),
            inst_id=str(row.get("instId", "")),
            ord_type=str(row.get("ordType", "")),
            side=row.get("side") or None,
            pos_side=row.get("posSide") or None,
            sz=row.get("sz") or None,
            tp_trigger_px=row.get("tpTriggerPx") or None,
            tp_ord_px=row.get("tpOrdPx") or None,
            sl_trigger_px=row.get("slTriggerPx") or None,
            sl_ord_px=row.get("slOrdPx") or None,
            tp_trigger_px_type=row.get("tpTriggerPxType") or None,
            sl_trigger_px_type=row.get("slTriggerPxType") or None,
        )


@dataclass
class OpenPositionResult:
    request: Dict[str, Any]
    response: Any
    success: bool = True
    leverage_request: Optional[Dict[str, Any]] = None
    leverage_response: Any = None
    leverage_warning: Optional[Dict[str, Any]] = None
    protective_request: Optional[Dict[str, Any]] = None
    protective_response: Any = None
    protective_warning: Optional[Dict[str, Any]] = None

    def to_envelope(self) -> Dict[str, Any]:
        envelope: Dict[str, Any] = {
            "ok": self.success,
            "request": self.request,
            "response": self.response,
            "leverageWarning": self.leverage_warning,
        }
        if self.leverage_request is not None:
            envelope["leverage"] = {"request": self.leverage_request, "response": self.leverage_response}
        if self.protective_request is not None:
            envelope["protective"] = {"request": self.protective_request, "response": self.protective_response}
            envelope["protectiveWarning"] = self.protective_warning
        return envelope


@dataclass
class CloseResult:
    success: bool = True
    noop: bool = False
    msg: Optional[str] = None
    position: Optional[NetPosition] = None
    request: Optional[Dict[str, Any]] = None
    response: Any = None

    def to_envelope(self) -> Dict[str, Any]:
        if self.noop:
            return {"ok": self.success, "noop": True, "msg": self.msg}
        return {
            "ok": self.success,
            "position": self.position.to_dict() if self.position else None,
            "request": self.request,
            "response": self.response,
        }


@dataclass
class ProtectiveResult:
    position: NetPosition
    cancelled: List[str] = field(default_factory=list)
    created: List[str] = field(default_factory=list)
    amended: Optional[str] = None
    request: Optional[Dict[str, Any]] = None
    response: Any = None
    cancel_request: Optional[List[Dict[str, Any]]] = None
    cancel_response: Any = None
    success: bool = True

    def to_envelope(self) -> Dict[str, Any]:
        return {
            "ok": self.success,
            "instId": self.position.inst_id,
            "position": self.position.to_dict(),
            "cancelled": self.cancelled,
            "created": self.created,
            "amended": self.amended,
            "request": self.request,
            "response": self.response,
            "cancel": {"request": self.cancel_request, "response": self.cancel_response},
        }
