"""
Client utilities for talking to the exchange.

This package provides the request signer and the HTTP client that
executes one signed OKX REST call at a time.
"""

from .auth_providers import OkxSigner, iso_timestamp  # noqa: F401
from .http_exchange import HttpExchangeClient  # noqa: F401
