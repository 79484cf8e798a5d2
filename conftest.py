"""Pytest configuration.

Ensures that ``src/`` is importable so that ``idle_notifier`` resolves when the
tests run from a plain checkout (without ``pip install -e .``), and points the
file logger at a temporary directory instead of ``./log``.
"""

import os
import sys
import tempfile
from pathlib import Path

ROOT = Path(__file__).resolve().parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

os.environ.setdefault(
    "IDLE_NOTIFIER_LOG_DIR", str(Path(tempfile.gettempdir()) / "idle_notifier-tests")
)
