"""Rename rules applied to raw frame names before matching and counting."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from stack_focus.core.regex_cache import RegexCache
from stack_focus.utils.errors import ConfigError

log = structlog.get_logger()

# \\ (an escaped backslash), \1 .. \99, \g<1>, \g<name>
TEMPLATE_REFERENCE = re.compile(r"\\(?:\\|(\d{1,2})|g<([^>]*)>)")


@dataclass(frozen=True)
class RenameRule:
    """A regex and the substitution template applied when it matches."""

    regex: re.Pattern[str]
    replacement: str

    @classmethod
    def compile(
        cls,
        pattern: str,
        replacement: str,
        cache: RegexCache | None = None,
    ) -> RenameRule:
        """Build a rule, validating the regex and its template.

        Raises:
            ConfigError: If the regex is invalid or the template references
                a group the regex does not define
        """
        try:
            regex = cache.compile(pattern) if cache is not None else re.compile(pattern)
        except re.error as e:
            raise ConfigError(f"Invalid rename regex {pattern!r}: {e.msg}") from e

        for match in TEMPLATE_REFERENCE.finditer(replacement):
            number, name = match.groups()
            if number is None and name is None:
                continue
            ref = number if number is not None else name
            if ref.isdigit():
                if int(ref) > regex.groups:
                    raise ConfigError(
                        f"Rename template {replacement!r} references group {ref}, "
                        f"but {pattern!r} has {regex.groups}"
                    )
            elif ref not in regex.groupindex:
                raise ConfigError(
                    f"Rename template {replacement!r} references unknown group {ref!r}"
                )

        return cls(regex=regex, replacement=replacement)

    def apply(self, name: str) -> str | None:
        """Return the rewritten name, or None if the rule does not apply."""
        if not self.regex.search(name):
            return None
        return self.regex.sub(self.replacement, name)


class NameRewriter:
    """Applies the first matching rename rule to each frame name.

    Results are memoized per raw name.

    Example:
        rewriter = NameRewriter.from_pairs([(r"^std::.*", "std")])
        rewriter.rewrite("std::vector::push_back")  # "std"
    """

    def __init__(self, rules: Iterable[RenameRule] = ()) -> None:
        self.rules: tuple[RenameRule, ...] = tuple(rules)
        self._memo: dict[str, str] = {}

    @classmethod
    def from_pairs(
        cls,
        pairs: Iterable[tuple[str, str]],
        cache: RegexCache | None = None,
    ) -> NameRewriter:
        """Build a rewriter from ``(regex, replacement)`` pairs."""
        rules = [RenameRule.compile(pattern, replacement, cache) for pattern, replacement in pairs]
        log.debug("rename_rules_compiled", count=len(rules))
        return cls(rules)

    def rewrite(self, name: str) -> str:
        """Rewrite one frame name."""
        cached = self._memo.get(name)
        if cached is not None:
            return cached

        result = name
        for rule in self.rules:
            rewritten = rule.apply(name)
            if rewritten is not None:
                result = rewritten
                break

        self._memo[name] = result
        return result

    def rewrite_all(self, frames: Iterable[str]) -> list[str]:
        """Rewrite every frame of a sample, preserving order."""
        if not self.rules:
            return list(frames)
        return [self.rewrite(frame) for frame in frames]

    def __bool__(self) -> bool:
        return bool(self.rules)

    def __len__(self) -> int:
        return len(self.rules)
