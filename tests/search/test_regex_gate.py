import re

import pytest

from modules.search import regex_gate
from modules.search.errors import SearchError, UnsafePatternError


def test_nested_repetition_rejected():
    with pytest.raises(UnsafePatternError) as excinfo:
        regex_gate.compile_query("(a+)+", use_regex=True)

    assert "star depth is limited to 1" in str(excinfo.value)
    assert isinstance(excinfo.value, SearchError)


@pytest.mark.parametrize("pattern", ["(?:a*)*b", "(ab{2,5})*", "((x|y)+z)?", "(a+?)+"])
def test_other_nested_repetitions_rejected(pattern):
    assert not regex_gate.is_safe_pattern(pattern)


def test_flat_repetitions_accepted():
    compiled = regex_gate.compile_query("a+b*", use_regex=True)

    assert compiled.search("xaab")
    assert regex_gate.star_height("a+b*") == (1, 2)


def test_too_many_repetitions_rejected():
    pattern = "a?" * (regex_gate.MAX_REPETITIONS + 1)

    with pytest.raises(UnsafePatternError):
        regex_gate.compile_query(pattern, use_regex=True)


def test_literal_query_is_escaped():
    compiled = regex_gate.compile_query("  (a+)+", use_regex=False)

    assert compiled.pattern == re.escape("(a+)+")
    assert compiled.search("user (a+)+ name")
    assert not compiled.search("aaaa")


def test_case_sensitivity_flag():
    insensitive = regex_gate.compile_query("Mod", use_regex=False)
    sensitive = regex_gate.compile_query("Mod", case_sensitive=True, use_regex=False)

    assert insensitive.search("moderator")
    assert not sensitive.search("moderator")
    assert sensitive.search("Moderator")


def test_leading_whitespace_trimmed_for_regex():
    compiled = regex_gate.compile_query("   ^bob", use_regex=True)

    assert compiled.search("bobby")


def test_invalid_regex_reported_as_search_error():
    with pytest.raises(UnsafePatternError) as excinfo:
        regex_gate.compile_query("([unclosed", use_regex=True)

    assert str(excinfo.value).startswith("Invalid regex")


@pytest.mark.parametrize(
    "pattern, expected",
    [("a*?", (1, 1)), ("a{2,5}", (1, 1)), ("(?:ab)++c", (1, 1)), ("abc", (0, 0))],
)
def test_parser_opcodes_on_this_interpreter(pattern, expected):
    assert regex_gate.star_height(pattern) == expected
