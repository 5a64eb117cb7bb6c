"""
secrets_manager
================

Loading of exchange credentials.  A secret is looked up first through a
``{NAME}_FILE`` environment variable pointing at a mounted file (Docker
or Kubernetes secrets), then through the plain ``{NAME}`` environment
variable.  An optional ``.env`` file is loaded with ``python-dotenv``
before the first lookup so local development does not need exported
variables; values already present in the environment win.

Example usage::

    from okx_proxy.secrets_manager import get_default_secrets_manager

    secrets = get_default_secrets_manager()
    api_key = secrets.get_secret("OKX_API_KEY")
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class BaseSecretsManager:
    """Abstract base class for secrets managers."""

    def get_secret(self, name: str) -> Optional[str]:  # pragma: no cover - override
        """Return the secret value for ``name`` or ``None`` if unavailable."""
        raise NotImplementedError


class EnvFileSecretsManager(BaseSecretsManager):
    """
    Loads secrets from environment variables and optional ``*_FILE`` paths.

    If both ``{name}`` and ``{name}_FILE`` are set, the file takes
    precedence.  Empty values are reported as ``None``.
    """

    def __init__(self, base_path: Optional[Path] = None, dotenv_path: Optional[Path] = None) -> None:
        #: Optional base directory to resolve relative file paths.
        self.base_path = base_path
        self._cache: Dict[str, Optional[str]] = {}
        if dotenv_path is not None and dotenv_path.exists():
            load_dotenv(dotenv_path, override=False)
            logger.debug("Loaded environment from %s", dotenv_path)

    def get_secret(self, name: str) -> Optional[str]:
        if name in self._cache:
            return self._cache[name]

        value: Optional[str]
        file_path = os.getenv(f"{name}_FILE")
        if file_path:
            path = Path(file_path)
            if not path.is_absolute() and self.base_path is not None:
                path = self.base_path / path
            try:
                value = path.read_text(encoding="utf-8").strip()
            except OSError as exc:
                # Only the path is logged, never the content
                logger.warning("Failed to read secret file for %s at %s: %s", name, path, exc)
                value = None
        else:
            value = os.getenv(name)

        value = value or None
        self._cache[name] = value
        return value


def get_default_secrets_manager() -> BaseSecretsManager:
    """Return the environment/file secrets manager.

    ``SECRETS_BASE_PATH`` resolves relative ``*_FILE`` paths and
    ``DOTENV_PATH`` (default ``.env`` in the working directory) names the
    dotenv file to load.
    """
    base = os.getenv("SECRETS_BASE_PATH")
    return EnvFileSecretsManager(
        base_path=Path(base) if base else None,
        dotenv_path=Path(os.getenv("DOTENV_PATH", ".env")),
    )


__all__ = [
    "BaseSecretsManager",
    "EnvFileSecretsManager",
    "get_default_secrets_manager",
]
