"""
Entry point for the execution proxy.

Configuration is read once from the environment (and optional secret
files / ``.env``), logging is configured from ``LOG_LEVEL`` and the
aiohttp application is served on ``PORT``.  Missing exchange
credentials stop the process before it starts listening.
"""

import logging
import sys

from aiohttp import web

from .app import create_app
from .config import ProxyConfig
from .errors import ConfigurationError


def main() -> None:
    config = ProxyConfig.from_env()
    logging.basicConfig(level=config.log_level)
    logger = logging.getLogger(__name__)
    try:
        app = create_app(config)
    except ConfigurationError as exc:
        logger.error("Refusing to start: %s", exc)
        sys.exit(1)
    logger.info(
        "okx-exec-proxy running on :%d (base_url=%s paper=%s)", config.port, config.base_url, config.paper
    )
    web.run_app(app, port=config.port, print=None)


if __name__ == "__main__":
    main()
