"""Test configuration to ensure repo modules are importable."""

from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("PYTHONPATH", str(ROOT))
# Keep a developer's real backend settings out of the suites.
for _name in ("STAKING_API_URL", "STAKING_API_KEY", "STAKING_API_HEADERS"):
    os.environ.pop(_name, None)
