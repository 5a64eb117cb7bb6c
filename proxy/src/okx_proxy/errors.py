"""
Error taxonomy for the execution proxy.

Every failure the proxy reports falls into one of these classes so that
the HTTP layer can map it onto a status code and envelope without
inspecting messages:

* ``ConfigurationError`` – credentials missing; raised before any
  network call is attempted.
* ``IntentValidationError`` – the caller's intent is incomplete or
  inconsistent; raised locally with zero exchange calls issued.
* ``ExchangeError`` – the exchange answered with a non-zero ``code``
  (or an HTTP error status).  The payload is kept verbatim.
* ``TransportError`` – the exchange could not be reached or answered
  with something that is not JSON.
* ``FlatPositionError`` – a protective order was requested for an
  instrument with no open exposure.

Best-effort failures (leverage changes, inline protective orders) are
never raised; they are attached as warnings to the result objects in
``okx_proxy.models``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ProxyError(Exception):
    """Base class for all errors raised by the proxy."""

    http_status: int = 500

    def to_dict(self) -> Dict[str, Any]:
        return {"error": str(self), "kind": type(self).__name__}


class ConfigurationError(ProxyError):
    http_status = 500


class IntentValidationError(ProxyError):
    http_status = 400


class FlatPositionError(ProxyError):
    """No live exposure to size an order against."""

    http_status = 409

    def __init__(self, inst_id: str) -> None:
        super().__init__(f"No open position for {inst_id}")
        self.inst_id = inst_id


class ExchangeError(ProxyError):
    """The exchange rejected a request.

    :param code: exchange status code (``"0"`` means success, anything
        else is a rejection)
    :param msg: exchange message
    :param http_status: HTTP status of the exchange response, if known
    :param payload: the decoded exchange response, unchanged
    """

    def __init__(
        self,
        code: str,
        msg: str,
        *,
        http_status: Optional[int] = None,
        payload: Any = None,
    ) -> None:
        super().__init__(f"Exchange error {code}: {msg}")
        self.code = code
        self.msg = msg
        self.exchange_status = http_status
        self.payload = payload
        # Mirror the exchange's HTTP status when it signalled an error itself
        self.http_status = http_status if http_status and http_status >= 400 else 502

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"code": self.code, "msg": self.msg, "detail": self.payload})
        return data


class TransportError(ProxyError):
    """Network level failure; no exchange payload is available."""

    def __init__(self, message: str, *, timeout: bool = False) -> None:
        super().__init__(message)
        self.timeout = timeout
        self.http_status = 504 if timeout else 502


__all__ = [
    "ProxyError",
    "ConfigurationError",
    "IntentValidationError",
    "FlatPositionError",
    "ExchangeError",
    "TransportError",
]
