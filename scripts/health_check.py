#!/usr/bin/env python
"""Simple health check utility.

This script reports whether the exchange credentials are present and
which environment the proxy would route orders to.  It never prints
secret values.  Operators can run it before starting the proxy; it
exits non-zero when a credential is missing.
"""

from __future__ import annotations

import sys

from okx_proxy.config import ProxyConfig


def main() -> int:
    config = ProxyConfig.from_env()
    status = config.credential_status()
    print("Health Check:")
    for key in ("hasKey", "hasSecret", "hasPassphrase"):
        print(f"{key}: {'set' if status[key] else 'missing'}")
    print(f"base_url: {config.base_url}")
    print(f"paper: {status['paper']}")
    print(f"server_time: {'on' if config.use_server_time else 'off'}")
    return 0 if all(status[k] for k in ("hasKey", "hasSecret", "hasPassphrase")) else 1


if __name__ == "__main__":
    sys.exit(main())
