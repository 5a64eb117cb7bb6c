"""
Execution proxy for the OKX v5 REST API.

The package turns simplified trading intents (open, close, set TP/SL)
into signed, correctly sequenced exchange calls.  ``clients`` holds the
signer and HTTP client, ``services`` the position netting and order
lifecycle logic, and ``app`` the aiohttp surface that exposes them.
"""

from .config import ProxyConfig  # noqa: F401
from .errors import (  # noqa: F401
    ConfigurationError,
    ExchangeError,
    FlatPositionError,
    IntentValidationError,
    ProxyError,
    TransportError,
)

__version__ = "0.3.0"
