"""
Pytest configuration and shared fixtures for trace_inspector tests.

This module provides:
- src/ on sys.path so tests run without an editable install
- Isolated settings (never touches ~/.config)
- Trace data builders as fixtures
"""

import sys
from pathlib import Path

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from trace_inspector.utils import settings  # noqa: E402

from tests.builders import ObservationBuilder, TraceBuilder  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point settings at a temp file and reset the cached instance."""
    config_dir = tmp_path / "config"
    monkeypatch.setattr(settings, "CONFIG_DIR", str(config_dir))
    monkeypatch.setattr(settings, "CONFIG_FILE", str(config_dir / "settings.json"))
    monkeypatch.setattr(settings, "_settings", None)
    yield config_dir


@pytest.fixture
def obs():
    """Factory fixture: obs("id") -> ObservationBuilder."""
    return ObservationBuilder


@pytest.fixture
def trace_builder() -> TraceBuilder:
    return TraceBuilder("trace-1")
