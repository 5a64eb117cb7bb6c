"""
Process configuration.

``ProxyConfig`` is built once at start-up and handed to every component
that needs it.  It is frozen: nothing in the proxy mutates credentials
or the base URL after start-up.  Missing credentials are not an error
here; the signer raises ``ConfigurationError`` when it is constructed,
which still happens before any network call.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from .secrets_manager import BaseSecretsManager, get_default_secrets_manager

DEFAULT_BASE_URL = "https://www.okx.com"


def _env_flag(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() not in ("false", "0", "no", "off")


@dataclass(frozen=True)
class ProxyConfig:
    api_key: str = ""
    secret_key: str = ""
    passphrase: str = ""
    paper: bool = False
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 15.0
    use_server_time: bool = True
    inst_type: str = "SWAP"
    port: int = 10000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, secrets: Optional[BaseSecretsManager] = None) -> "ProxyConfig":
        """Read the configuration from the environment and secrets backend."""
        secrets = secrets or get_default_secrets_manager()
        return cls(
            api_key=secrets.get_secret("OKX_API_KEY") or "",
            secret_key=secrets.get_secret("OKX_SECRET_KEY") or "",
            passphrase=secrets.get_secret("OKX_PASSPHRASE") or "",
            # Only an explicit "1" routes to the simulated environment
            paper=os.environ.get("PAPER", "0").strip() == "1",
            base_url=os.environ.get("OKX_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            timeout=float(os.environ.get("OKX_TIMEOUT", "15")),
            use_server_time=_env_flag(os.environ.get("OKX_USE_SERVER_TIME"), True),
            inst_type=os.environ.get("OKX_INST_TYPE", "SWAP").upper(),
            port=int(os.environ.get("PORT", "10000")),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )

    def credential_status(self) -> dict:
        """Which credentials are present, without revealing them."""
        return {
            "hasKey": bool(self.api_key),
            "hasSecret": bool(self.secret_key),
            "hasPassphrase": bool(self.passphrase),
            "paper": "1" if self.paper else "0",
        }
