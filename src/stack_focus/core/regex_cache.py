"""Explicit cache of compiled regular expressions."""

from __future__ import annotations

import re

import structlog

from stack_focus.utils.metrics import get_metrics

log = structlog.get_logger()


class RegexCache:
    """Compiles regexes once per distinct pattern text.

    Example:
        cache = RegexCache()
        regex = cache.compile(r"^malloc$")
        assert cache.compile(r"^malloc$") is regex
    """

    def __init__(self) -> None:
        self._compiled: dict[str, re.Pattern[str]] = {}
        self.hits = 0
        self.misses = 0

    def compile(self, text: str) -> re.Pattern[str]:
        """Return the compiled regex for ``text``.

        Raises:
            re.error: If ``text`` is not a valid regular expression
        """
        regex = self._compiled.get(text)
        if regex is not None:
            self.hits += 1
            get_metrics().regex_cache_hits.inc()
            return regex

        regex = re.compile(text)
        self._compiled[text] = regex
        self.misses += 1
        get_metrics().regex_cache_misses.inc()
        log.debug("regex_compiled", pattern=text)
        return regex

    def clear(self) -> None:
        self._compiled.clear()

    def __len__(self) -> int:
        return len(self._compiled)

    def __contains__(self, text: object) -> bool:
        return text in self._compiled
