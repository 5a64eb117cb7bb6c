"""
Request signing for the OKX v5 REST API.

OKX authenticates every private request with four headers.  The
signature is a base64 encoded HMAC-SHA256 over the concatenation
``timestamp + METHOD + request_path + body`` keyed with the API secret.
``request_path`` includes the query string and ``body`` is the exact JSON
text that is transmitted (the empty string for GET).  Any difference
between what is signed and what is sent is rejected by the exchange, so
callers must pass the already-serialized body and the already-encoded
path, and then send those same strings.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import time
from datetime import datetime, timezone
from typing import Dict, Optional

from ..config import ProxyConfig
from ..errors import ConfigurationError
from ..models import SignedRequest


def iso_timestamp(epoch_ms: Optional[int] = None) -> str:
    """Return a UTC ISO-8601 timestamp with millisecond precision.

    :param epoch_ms: milliseconds since the epoch; the local clock is
        used when omitted
    """
    if epoch_ms is None:
        epoch_ms = int(time.time() * 1000)
    dt = datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{epoch_ms % 1000:03d}Z"


class OkxSigner:
    """HMAC-SHA256 signer and header builder for one set of credentials."""

    def __init__(self, api_key: str, secret_key: str, passphrase: str, *, paper: bool = False) -> None:
        missing = [
            name
            for name, value in (
                ("OKX_API_KEY", api_key),
                ("OKX_SECRET_KEY", secret_key),
                ("OKX_PASSPHRASE", passphrase),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(f"Missing exchange credentials: {', '.join(missing)}")
        self.api_key = api_key
        self._secret = secret_key.encode()
        self.passphrase = passphrase
        self.paper = paper

    @classmethod
    def from_config(cls, config: ProxyConfig) -> "OkxSigner":
        return cls(config.api_key, config.secret_key, config.passphrase, paper=config.paper)

    def sign(self, timestamp: str, method: str, path: str, body: str = "") -> str:
        """Sign the request and return the base64-encoded digest."""
        message = f"{timestamp}{method.upper()}{path}{body}".encode()
        return base64.b64encode(hmac.new(self._secret, message, hashlib.sha256).digest()).decode()

    def sign_request(self, timestamp: str, method: str, path: str, body: str = "") -> SignedRequest:
        method = method.upper()
        return SignedRequest(
            timestamp=timestamp,
            method=method,
            path=path,
            body=body,
            signature=self.sign(timestamp, method, path, body),
        )

    def headers(self, signed: SignedRequest) -> Dict[str, str]:
        headers: Dict[str, str] = {
            "OK-ACCESS-KEY": self.api_key,
            "OK-ACCESS-SIGN": signed.signature,
            "OK-ACCESS-TIMESTAMP": signed.timestamp,
            "OK-ACCESS-PASSPHRASE": self.passphrase,
            "Content-Type": "application/json",
        }
        if self.paper:
            headers["x-simulated-trading"] = "1"
        return headers
