from __future__ import annotations

from typing import Any, Dict, Optional


class AccountService:
    """Read-only account queries."""

    def __init__(self, client, default_ccy: str = "USDT") -> None:
        self.client = client
        self.default_ccy = default_ccy

    async def balance(self, ccy: Optional[str] = None) -> Dict[str, Any]:
        ccy = (ccy or self.default_ccy).upper()
        response = await self.client.get_balance(ccy)
        return {"ok": True, "ccy": ccy, "data": response}
