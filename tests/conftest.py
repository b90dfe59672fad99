"""Pytest configuration: make the zerofeed package importable from src/."""

from __future__ import annotations

import sys
from pathlib import Path

# Uninstalled checkouts resolve `zerofeed` from src/.
src_path = (Path(__file__).resolve().parents[1] / "src").as_posix()
if src_path not in sys.path:
    sys.path.insert(0, src_path)
