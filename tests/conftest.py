from __future__ import annotations

import sys
from pathlib import Path

import pytest

_START = Path(__file__).resolve().parent
_repo_root = _START
while _repo_root != _repo_root.parent and not (_repo_root / "curvekit" / "__init__.py").exists():
    _repo_root = _repo_root.parent

sys.path.insert(0, str(_repo_root))


@pytest.fixture
def viewport():
    """The 800x600 canvas with the origin at (400, 300) and 50 px per unit."""
    from curvekit import Viewport

    return Viewport(origin=(400, 300), units_per_math_unit=50, extent=(800, 600))
