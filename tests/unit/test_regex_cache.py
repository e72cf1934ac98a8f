"""Tests for the regex cache."""

import re

import pytest

from stack_focus.core.regex_cache import RegexCache
from stack_focus.utils.metrics import get_metrics


class TestRegexCache:
    """Tests for RegexCache."""

    def test_same_text_returns_same_object(self, cache: RegexCache) -> None:
        """Test that a pattern is compiled once."""
        first = cache.compile(r"^malloc$")
        assert cache.compile(r"^malloc$") is first
        assert cache.hits == 1
        assert cache.misses == 1

    def test_distinct_texts(self, cache: RegexCache) -> None:
        """Test that different patterns get separate entries."""
        cache.compile("a")
        cache.compile("b")
        assert len(cache) == 2
        assert "a" in cache
        assert "c" not in cache

    def test_invalid_regex_not_cached(self, cache: RegexCache) -> None:
        """Test that compile errors propagate and leave no entry."""
        with pytest.raises(re.error):
            cache.compile("(")
        assert "(" not in cache

    def test_clear(self, cache: RegexCache) -> None:
        """Test emptying the cache."""
        cache.compile("a")
        cache.clear()
        assert len(cache) == 0

    def test_metrics_recorded(self, cache: RegexCache) -> None:
        """Test that hits and misses are reported to the registry."""
        cache.compile("a")
        cache.compile("a")
        cache.compile("a")
        metrics = get_metrics()
        assert metrics.regex_cache_misses.get() == 1
        assert metrics.regex_cache_hits.get() == 2
