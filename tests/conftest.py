"""Shared test fixtures for stack-focus."""

from collections.abc import Iterator
from pathlib import Path

import pytest

from stack_focus.core.regex_cache import RegexCache
from stack_focus.utils.logging import clear_context
from stack_focus.utils.metrics import MetricsRegistry

# Get the fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"
PERF_DIR = FIXTURES_DIR / "perf"


@pytest.fixture(autouse=True)
def fresh_metrics() -> Iterator[None]:
    """Start every test with an empty metrics registry and no bound log context."""
    MetricsRegistry.reset()
    yield
    MetricsRegistry.reset()
    clear_context()


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def perf_file() -> Path:
    """Path to a small `perf script` capture with three samples."""
    return PERF_DIR / "simple.txt"


@pytest.fixture
def cache() -> RegexCache:
    """Return a fresh regex cache."""
    return RegexCache()


@pytest.fixture
def three_samples() -> list[list[str]]:
    """Samples used by the end-to-end match scenarios."""
    return [["a", "b", "c"], ["a", "c", "b"], ["x", "y"]]
