"""Service layer for the proxy.

This package exposes the services that turn caller intents into
sequenced exchange calls: position netting, order execution, position
closing, protective order reconciliation and account queries.
"""

from .account_service import AccountService  # noqa: F401
from .close_service import ClosePositionService  # noqa: F401
from .order_executor import OrderExecutor  # noqa: F401
from .position_oracle import PositionOracle  # noqa: F401
from .protective_reconciler import ProtectiveOrderReconciler  # noqa: F401
