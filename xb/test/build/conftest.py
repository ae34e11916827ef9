from __future__ import annotations

from pathlib import Path

import pytest

from xb.core.environment import Environment


@pytest.fixture
def env(tmp_path: Path) -> Environment:
    return Environment(root=tmp_path)
