"""Tests for rename rules."""

import pytest

from stack_focus.core.regex_cache import RegexCache
from stack_focus.core.rewriter import NameRewriter, RenameRule
from stack_focus.utils.errors import ConfigError


class TestRenameRule:
    """Tests for RenameRule."""

    def test_whole_name_replacement(self) -> None:
        """Test a rule that replaces the whole name."""
        rule = RenameRule.compile(r"^std::.*", "std")
        assert rule.apply("std::vector::push_back") == "std"

    def test_partial_substitution(self) -> None:
        """Test that only the matched part of the name is replaced."""
        rule = RenameRule.compile(r"<u8>", "<T>")
        assert rule.apply("Vec<u8>::push") == "Vec<T>::push"

    def test_no_match_returns_none(self) -> None:
        """Test a rule that does not apply."""
        assert RenameRule.compile(r"^core::", "core").apply("main") is None

    def test_numbered_group_reference(self) -> None:
        """Test a template using a numbered group."""
        rule = RenameRule.compile(r"^(\w+)::h[0-9a-f]+$", r"\1")
        assert rule.apply("drop::h1a2b3c") == "drop"

    def test_named_group_reference(self) -> None:
        """Test a template using a named group."""
        rule = RenameRule.compile(r"^(?P<crate>\w+)::.*", r"\g<crate>")
        assert rule.apply("serde::de::deserialize") == "serde"

    def test_invalid_regex(self) -> None:
        """Test that a bad regex is a configuration error."""
        with pytest.raises(ConfigError, match="Invalid rename regex"):
            RenameRule.compile(r"(unclosed", "x")

    def test_missing_numbered_group(self) -> None:
        """Test a template referencing a group the regex lacks."""
        with pytest.raises(ConfigError, match="references group 2"):
            RenameRule.compile(r"^(a)", r"\2")

    def test_missing_named_group(self) -> None:
        """Test a template referencing an unknown named group."""
        with pytest.raises(ConfigError, match="unknown group 'name'"):
            RenameRule.compile(r"^(a)", r"\g<name>")

    def test_escaped_backslash_is_not_a_group_reference(self) -> None:
        """Test that an escaped backslash before a digit is literal, not a group."""
        rule = RenameRule.compile(r"^x$", r"lit\\1")
        assert rule.apply("x") == r"lit\1"

    def test_reference_after_escaped_backslash(self) -> None:
        """Test that a real reference following an escaped backslash is still checked."""
        with pytest.raises(ConfigError, match="references group 1"):
            RenameRule.compile(r"^x$", r"\\\1")
        rule = RenameRule.compile(r"^(x)$", r"\\\1")
        assert rule.apply("x") == r"\x"

    def test_compile_uses_cache(self, cache: RegexCache) -> None:
        """Test that rule regexes go through the cache."""
        RenameRule.compile(r"^a", "b", cache)
        RenameRule.compile(r"^a", "c", cache)
        assert cache.misses == 1
        assert cache.hits == 1


class TestNameRewriter:
    """Tests for NameRewriter."""

    def test_first_matching_rule_wins(self) -> None:
        """Test rule order."""
        rewriter = NameRewriter.from_pairs([(r"^std::", "first::"), (r"std", "second")])
        assert rewriter.rewrite("std::mem::swap") == "first::mem::swap"

    def test_unmatched_name_passes_through(self) -> None:
        """Test that names no rule matches are unchanged."""
        rewriter = NameRewriter.from_pairs([(r"^std::.*", "std")])
        assert rewriter.rewrite("main") == "main"

    def test_empty_rewriter(self) -> None:
        """Test a rewriter with no rules."""
        rewriter = NameRewriter()
        assert not rewriter
        assert len(rewriter) == 0
        assert rewriter.rewrite_all(("a", "b")) == ["a", "b"]

    def test_rules_apply_once(self) -> None:
        """Test that a rewritten name is not fed through the rules again."""
        rewriter = NameRewriter.from_pairs([(r"^a$", "b"), (r"^b$", "c")])
        assert rewriter.rewrite("a") == "b"

    def test_rewrite_all_preserves_order(self) -> None:
        """Test rewriting a whole sample."""
        rewriter = NameRewriter.from_pairs([(r"^je_(\w+)$", r"\1")])
        frames = ["main", "je_malloc", "je_arena_salloc"]
        assert rewriter.rewrite_all(frames) == ["main", "malloc", "arena_salloc"]

    def test_results_are_memoized(self) -> None:
        """Test that each raw name is rewritten once."""
        rewriter = NameRewriter.from_pairs([(r"^x", "y")])
        rewriter.rewrite("x1")
        rewriter.rewrite("x1")
        assert rewriter._memo == {"x1": "y1"}

    def test_from_pairs_rejects_bad_rule(self) -> None:
        """Test that one bad rule fails the whole set."""
        with pytest.raises(ConfigError):
            NameRewriter.from_pairs([(r"^ok$", "fine"), (r"[", "bad")])
