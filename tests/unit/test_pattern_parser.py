"""Tests for PatternParser functionality."""

import re

import pytest

from stack_focus.core.pattern_parser import PatternParser, parse_pattern
from stack_focus.core.regex_cache import RegexCache
from stack_focus.models.pattern import AnyFrame, Leaf, Not, Seq, Skip
from stack_focus.utils.errors import ConfigError, PatternParseError


def leaf(text: str) -> Leaf:
    return Leaf(regex=re.compile(text), text=text)


@pytest.fixture
def parser(cache: RegexCache) -> PatternParser:
    """Create a PatternParser with a fresh cache."""
    return PatternParser(cache)


class TestPatternParserParse:
    """Tests for well-formed queries."""

    def test_single_leaf(self, parser: PatternParser) -> None:
        """Test a query with one regex term."""
        pattern = parser.parse("{^main$}")
        assert pattern.terms == (leaf("^main$"),)
        assert isinstance(pattern.root, Leaf)
        assert pattern.root.regex.search("main")

    def test_comma_builds_seq(self, parser: PatternParser) -> None:
        """Test that ',' chains terms with Seq."""
        pattern = parser.parse("{^a$},{^b$}")
        assert pattern.root == Seq(leaf("^a$"), leaf("^b$"))
        assert pattern.terms == (leaf("^a$"), leaf("^b$"))

    def test_infix_skip_desugars(self, parser: PatternParser) -> None:
        """Test that a..b is a,..b."""
        infix = parser.parse("{a}..{b}")
        explicit = parser.parse("{a},..{b}")
        assert infix.root == Seq(leaf("a"), Skip(leaf("b")))
        assert infix.root == explicit.root

    def test_leading_skip(self, parser: PatternParser) -> None:
        """Test a skip prefix on the first term."""
        pattern = parser.parse("..{^malloc$}")
        assert pattern.root == Skip(leaf("^malloc$"))

    def test_negated_skip(self, parser: PatternParser) -> None:
        """Test the !.. absence operator."""
        pattern = parser.parse("{^a$},!..{^b$}")
        assert pattern.terms == (leaf("^a$"), Not(Skip(leaf("^b$"))))

    def test_negated_leaf(self, parser: PatternParser) -> None:
        """Test '!' on a bare term."""
        pattern = parser.parse("!{^a$}")
        assert pattern.root == Not(leaf("^a$"))
        assert pattern.consumes is False

    def test_wildcard(self, parser: PatternParser) -> None:
        """Test the '.' any-frame atom."""
        pattern = parser.parse("{^a$},.,{^c$}")
        assert pattern.terms == (leaf("^a$"), AnyFrame(), leaf("^c$"))

    def test_three_term_chain(self, parser: PatternParser) -> None:
        """Test that longer chains flatten in order."""
        pattern = parser.parse("{^main$}..{^run$},{^step$}..{^malloc$}")
        assert pattern.terms == (
            leaf("^main$"),
            Skip(leaf("^run$")),
            leaf("^step$"),
            Skip(leaf("^malloc$")),
        )

    def test_nested_braces_in_regex(self, parser: PatternParser) -> None:
        """Test that balanced braces stay inside the regex."""
        pattern = parser.parse("{^a{2}$}")
        assert pattern.terms[0] == leaf("^a{2}$")
        assert pattern.terms[0].regex.search("aa")

    def test_escaped_brace_in_regex(self, parser: PatternParser) -> None:
        """Test that a backslash escapes a closing brace."""
        pattern = parser.parse(r"{a\}b}")
        assert pattern.terms[0].text == r"a\}b"
        assert pattern.terms[0].regex.search("a}b")

    def test_whitespace_between_terms(self, parser: PatternParser) -> None:
        """Test that whitespace between tokens is ignored."""
        pattern = parser.parse("  {a} ,  {b} .. {c}  ")
        assert pattern.terms == (leaf("a"), leaf("b"), Skip(leaf("c")))

    def test_rust_style_symbol(self, parser: PatternParser) -> None:
        """Test a regex with characters common in mangled symbols."""
        pattern = parser.parse(r"{rustc::ty::maps::<impl .*>::force}")
        assert pattern.terms[0].regex.search(
            "rustc::ty::maps::<impl rustc::ty::maps::queries::borrowck<'tcx>>::force"
        )

    def test_str_round_trip(self, parser: PatternParser) -> None:
        """Test that patterns print back in query syntax."""
        pattern = parser.parse("{a}..{b},!..{c},.")
        assert str(pattern) == "{a}..{b},!..{c},."

    def test_pattern_keeps_source_text(self, parser: PatternParser) -> None:
        """Test that the original query text is kept."""
        assert parser.parse("{a} , {b}").text == "{a} , {b}"

    def test_parse_pattern_function(self, cache: RegexCache) -> None:
        """Test the module-level helper."""
        pattern = parse_pattern("{^a$}..{^b$}", cache)
        assert len(pattern.terms) == 2
        assert "^a$" in cache


class TestPatternParserCache:
    """Tests for regex cache use by the parser."""

    def test_repeated_regex_compiled_once(self, parser: PatternParser) -> None:
        """Test that identical leaves share one compiled regex."""
        pattern = parser.parse("{^a$}..{^a$}")
        first, second = pattern.terms
        assert isinstance(second, Skip)
        assert first.regex is second.inner.regex
        assert parser.cache.misses == 1
        assert parser.cache.hits == 1

    def test_default_cache_created(self) -> None:
        """Test that a parser without a cache gets its own."""
        parser = PatternParser()
        parser.parse("{x}")
        assert len(parser.cache) == 1


class TestPatternParserErrors:
    """Tests for malformed queries."""

    @pytest.mark.parametrize("text", ["", "   "])
    def test_empty_query(self, parser: PatternParser, text: str) -> None:
        """Test that empty queries are rejected."""
        with pytest.raises(PatternParseError, match="Empty query") as exc_info:
            parser.parse(text)
        assert exc_info.value.offset == 0

    def test_unmatched_open_brace(self, parser: PatternParser) -> None:
        """Test a '{' with no closing '}'."""
        with pytest.raises(PatternParseError, match="Unmatched '\\{'") as exc_info:
            parser.parse("{a},{abc")
        assert exc_info.value.offset == 4
        assert exc_info.value.fragment == "{abc"

    def test_unmatched_close_brace_after_term(self, parser: PatternParser) -> None:
        """Test a stray '}' after a term."""
        with pytest.raises(PatternParseError, match="Unmatched '\\}'") as exc_info:
            parser.parse("{a}}")
        assert exc_info.value.offset == 3

    def test_unmatched_close_brace_alone(self, parser: PatternParser) -> None:
        """Test a query that is just '}'."""
        with pytest.raises(PatternParseError, match="Unmatched '\\}'") as exc_info:
            parser.parse("}")
        assert exc_info.value.offset == 0

    def test_invalid_regex(self, parser: PatternParser) -> None:
        """Test that a bad regex is a configuration error."""
        with pytest.raises(PatternParseError, match="Invalid regex") as exc_info:
            parser.parse("{a(}")
        error = exc_info.value
        assert isinstance(error, ConfigError)
        assert error.fragment == "a("
        assert error.offset == 2

    def test_bang_without_term(self, parser: PatternParser) -> None:
        """Test a trailing '!'."""
        with pytest.raises(PatternParseError, match="Expected a term after '!'") as exc_info:
            parser.parse("{a},!")
        assert exc_info.value.offset == 4

    def test_bang_followed_by_separator(self, parser: PatternParser) -> None:
        """Test '!' followed by something that is not a term."""
        with pytest.raises(PatternParseError, match="Expected a term after '!'"):
            parser.parse("!,{a}")

    def test_dangling_infix_skip(self, parser: PatternParser) -> None:
        """Test a trailing infix '..'."""
        with pytest.raises(PatternParseError, match="Expected a term after '..'") as exc_info:
            parser.parse("{a}..")
        assert exc_info.value.offset == 3

    def test_dangling_prefix_skip(self, parser: PatternParser) -> None:
        """Test a trailing prefix '..' after a comma."""
        with pytest.raises(PatternParseError, match="Expected a term after '..'") as exc_info:
            parser.parse("{a},..")
        assert exc_info.value.offset == 4

    def test_dangling_comma(self, parser: PatternParser) -> None:
        """Test a trailing ','."""
        with pytest.raises(PatternParseError, match="Expected a term after ','"):
            parser.parse("{a},")

    @pytest.mark.parametrize("text", ["({a})", "{a},({b})", "{a}({b})"])
    def test_groups_rejected(self, parser: PatternParser, text: str) -> None:
        """Test that parenthesized groups are not supported."""
        with pytest.raises(PatternParseError, match="Nested groups are not supported"):
            parser.parse(text)

    def test_negation_after_infix_skip(self, parser: PatternParser) -> None:
        """Test that '!' may not follow an infix '..'."""
        with pytest.raises(PatternParseError, match="after infix") as exc_info:
            parser.parse("{a}..!{b}")
        assert exc_info.value.offset == 5

    def test_missing_separator(self, parser: PatternParser) -> None:
        """Test two terms with no separator."""
        with pytest.raises(PatternParseError, match="Expected ',' or '..'") as exc_info:
            parser.parse("{a} {b}")
        assert exc_info.value.offset == 4

    def test_offset_counts_bytes(self, parser: PatternParser) -> None:
        """Test that offsets are UTF-8 byte offsets."""
        with pytest.raises(PatternParseError) as exc_info:
            parser.parse("{é},}")
        assert exc_info.value.column == 4
        assert exc_info.value.offset == 5

    def test_error_message_names_offset(self, parser: PatternParser) -> None:
        """Test the string form of a parse error."""
        with pytest.raises(PatternParseError) as exc_info:
            parser.parse("{a}}")
        assert str(exc_info.value) == "Unmatched '}' at offset 3: '}'"

    def test_caret_lines(self, parser: PatternParser) -> None:
        """Test the caret diagnostic under the offending column."""
        with pytest.raises(PatternParseError) as exc_info:
            parser.parse("{a}}")
        assert exc_info.value.caret_lines() == ["    {a}}", "       ^"]
