from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.core.config import Settings


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_dsn="sqlite+aiosqlite:///:memory:",
        signal_fetch_timeout_seconds=0.5,
        service_token="",
    )
