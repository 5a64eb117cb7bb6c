"""Tests for the shared order payload builder."""

from __future__ import annotations

from decimal import Decimal

import pytest  # type: ignore

from okx_proxy.errors import IntentValidationError
from okx_proxy.models import OrderIntent, ProtectiveOrder, ProtectivePrices
from okx_proxy.services.order_builder import (
    build_amend_payload,
    build_leverage_payload,
    build_order_payload,
    build_protective_payload,
    decimal_str,
    opposite_side,
    parse_intent,
    protective_ord_type,
)


@pytest.mark.parametrize(
    "value, expected",
    [(Decimal("2.50"), "2.5"), (Decimal("100"), "100"), ("1e2", "100"), (0.1, "0.1"), (Decimal("-1"), "-1"), (0, "0")],
)
def test_decimal_str_is_plain(value, expected) -> None:
    assert decimal_str(value) == expected


def test_opposite_side() -> None:
    assert opposite_side("buy") == "sell"
    assert opposite_side("sell") == "buy"
    with pytest.raises(IntentValidationError):
        opposite_side("long")


def test_protective_type_follows_legs() -> None:
    assert protective_ord_type(ProtectivePrices(tpTriggerPx="100", slTriggerPx="90")) == "oco"
    assert protective_ord_type(ProtectivePrices(tpTriggerPx="100")) == "conditional"
    assert protective_ord_type(ProtectivePrices(slTriggerPx="90")) == "conditional"
    with pytest.raises(IntentValidationError):
        protective_ord_type(ProtectivePrices())


def test_order_payload_only_includes_set_fields() -> None:
    payload = build_order_payload("X", "buy", Decimal("1.0"))
    assert payload == {"instId": "X", "tdMode": "cross", "side": "buy", "ordType": "market", "sz": "1"}


def test_reduce_only_order_payload() -> None:
    payload = build_order_payload("X", "sell", "2.5", td_mode="isolated", pos_side="long", reduce_only=True)
    assert payload["reduceOnly"] is True
    assert payload["posSide"] == "long"
    assert payload["tdMode"] == "isolated"
    assert payload["sz"] == "2.5"


@pytest.mark.parametrize("sz", [0, "-1", Decimal("0")])
def test_non_positive_size_is_rejected(sz) -> None:
    with pytest.raises(IntentValidationError):
        build_order_payload("X", "buy", sz)


def test_bad_side_and_missing_instrument_are_rejected() -> None:
    with pytest.raises(IntentValidationError):
        build_order_payload("X", "long", "1")
    with pytest.raises(IntentValidationError):
        build_order_payload("", "buy", "1")


def test_protective_payload_is_opposite_and_reduce_only() -> None:
    prices = ProtectivePrices(tpTriggerPx="100", slTriggerPx="90", slTriggerPxType="mark")
    payload = build_protective_payload("X", "buy", "1", prices)
    assert payload == {
        "instId": "X",
        "tdMode": "cross",
        "side": "sell",
        "ordType": "oco",
        "sz": "1",
        "reduceOnly": True,
        "tpTriggerPx": "100",
        "tpOrdPx": "-1",
        "slTriggerPx": "90",
        "slOrdPx": "-1",
        "slTriggerPxType": "mark",
    }


def test_protective_payload_keeps_explicit_order_price() -> None:
    prices = ProtectivePrices(slTriggerPx="90", slOrdPx="89.5")
    payload = build_protective_payload("X", "sell", "3", prices)
    assert payload["side"] == "buy"
    assert payload["ordType"] == "conditional"
    assert payload["slOrdPx"] == "89.5"
    assert "tpTriggerPx" not in payload


def test_leverage_payload() -> None:
    assert build_leverage_payload("X", Decimal("10"), "cross") == {"instId": "X", "lever": "10", "mgnMode": "cross"}
    assert build_leverage_payload("X", "5", "isolated", "long")["posSide"] == "long"


def test_amend_payload_uses_new_fields() -> None:
    order = ProtectiveOrder(algo_id="a1", inst_id="X", ord_type="oco")
    payload = build_amend_payload(order, Decimal("2"), ProtectivePrices(tpTriggerPx="110", slTriggerPx="95"))
    assert payload == {
        "instId": "X",
        "algoId": "a1",
        "newSz": "2",
        "newTpTriggerPx": "110",
        "newTpOrdPx": "-1",
        "newSlTriggerPx": "95",
        "newSlOrdPx": "-1",
    }


def test_amend_payload_keeps_pending_trigger_type_unless_given() -> None:
    order = ProtectiveOrder(algo_id="a1", inst_id="X", ord_type="oco", tp_trigger_px_type="mark", sl_trigger_px_type="index")
    prices = ProtectivePrices(tpTriggerPx="110", slTriggerPx="95", slTriggerPxType="last")
    payload = build_amend_payload(order, Decimal("2"), prices)
    assert payload["newTpTriggerPxType"] == "mark"
    assert payload["newSlTriggerPxType"] == "last"


def test_pending_row_keeps_leg_and_trigger_types() -> None:
    order = ProtectiveOrder.from_row(
        {"algoId": "7", "instId": "X", "ordType": "oco", "posSide": "long", "tpTriggerPxType": "mark", "slTriggerPxType": ""}
    )
    assert (order.pos_side, order.tp_trigger_px_type, order.sl_trigger_px_type) == ("long", "mark", None)


def test_parse_intent_accepts_exchange_field_names() -> None:
    intent = parse_intent(OrderIntent, {"instId": "X", "side": "buy", "sz": "1", "tpTriggerPx": "100"})
    assert intent.inst_id == "X"
    assert intent.ord_type == "market"
    assert intent.td_mode == "cross"
    assert intent.tp_trigger_px == Decimal("100")


@pytest.mark.parametrize(
    "body",
    [
        {"side": "buy", "sz": "1"},
        {"instId": "X", "sz": "1"},
        {"instId": "X", "side": "buy"},
        {"instId": "X", "side": "buy", "sz": "0"},
        {"instId": "X", "side": "hold", "sz": "1"},
        {"instId": "X", "side": "buy", "sz": "1", "ordType": "limit"},
    ],
)
def test_parse_intent_rejects_incomplete_orders(body) -> None:
    with pytest.raises(IntentValidationError):
        parse_intent(OrderIntent, body)


def test_parse_intent_rejects_non_objects() -> None:
    with pytest.raises(IntentValidationError):
        parse_intent(OrderIntent, ["not", "a", "dict"])
