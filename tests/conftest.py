"""
pytest configuration for hubrelay tests.

Adds src directory to Python path for imports and isolates tests from
environment variables that change configuration loading.
"""

import sys
from pathlib import Path

import pytest

src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))
sys.path.insert(0, str(Path(__file__).parent))

from hubrelay.core.logging import clear_log_context  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    monkeypatch.delenv("EVENTHUB_CONNECTION_STRING", raising=False)
    clear_log_context()
    yield
    clear_log_context()
