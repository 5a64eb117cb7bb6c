"""Pytest configuration for path setup.

The test suite imports the package from ``proxy/src`` and the helpers
from ``tests/helpers``.  When pytest is executed as an installed script,
neither the repository root nor the source directory is automatically
added to ``sys.path``; this file puts both at the front so the tests run
with or without ``pip install -e .``.
"""

from __future__ import annotations

import sys
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]

for path in (ROOT, ROOT / "proxy" / "src"):
    path_str = str(path)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)
