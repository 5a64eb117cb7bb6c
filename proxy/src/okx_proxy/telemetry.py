"""
Prometheus metrics for the proxy.

Counters are registered once on the default registry when this module is
imported.  The HTTP surface exposes them on ``GET /metrics``; there is no
separate metrics server.
"""

from prometheus_client import CONTENT_TYPE_LATEST, Counter, generate_latest

EXCHANGE_REQUESTS = Counter(
    "okx_proxy_exchange_requests_total",
    "Signed calls made to the exchange",
    labelnames=["method", "path", "outcome"],
)

HTTP_REQUESTS = Counter(
    "okx_proxy_http_requests_total",
    "Requests served by the proxy",
    labelnames=["route", "status"],
)


def record_exchange_call(method: str, path: str, outcome: str) -> None:
    # Query strings carry instrument ids; keep label cardinality bounded
    EXCHANGE_REQUESTS.labels(method=method, path=path.split("?", 1)[0], outcome=outcome).inc()


def record_http_request(route: str, status: int) -> None:
    HTTP_REQUESTS.labels(route=route, status=str(status)).inc()


def render_latest() -> tuple[bytes, str]:
    """Return the exposition payload and its content type."""
    return generate_latest(), CONTENT_TYPE_LATEST
