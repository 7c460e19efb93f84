"""
Tests for replace and postformat rules.
"""

import pytest
import sys
from pathlib import Path

# Add package to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from addressfmt.formatter.substitution import apply_replacements, dedupe_segments, postformat
from addressfmt.rules.store import ExactKeyRule, PatternRule, compile_rules


def rules(*pairs, allow_exact_key=True):
    compiled, warnings = compile_rules([list(p) for p in pairs], "test", allow_exact_key=allow_exact_key)
    assert not warnings, f"Unexpected rule warnings: {warnings}"
    return compiled


class TestCompileRules:

    def test_exact_key_and_pattern_rules(self):
        compiled = rules(["city=Berlin-Mitte", "Berlin"], ["^Stadtteil ", ""])

        assert compiled[0] == ExactKeyRule(key="city", value="Berlin-Mitte", replacement="Berlin")
        assert isinstance(compiled[1], PatternRule)
        assert compiled[1].pattern == "^Stadtteil "

    def test_exact_key_disabled(self):
        compiled = rules(["city=Berlin", "X"], allow_exact_key=False)
        assert isinstance(compiled[0], PatternRule)

    def test_invalid_pattern_skipped_with_warning(self):
        compiled, warnings = compile_rules([["(unclosed", "x"], ["a", "b"]], "XX.replace")

        assert len(compiled) == 1
        assert compiled[0].pattern == "a"
        assert len(warnings) == 1
        assert warnings[0].source == "XX.replace"
        assert "XX.replace: invalid pattern '(unclosed'" in str(warnings[0])


class TestApplyReplacements:

    def test_rules_apply_in_order_to_each_value(self):
        components = {"street": "Hello World"}
        apply_replacements(components, rules(["^Hello", "Bye"], ["d", "t"]))

        assert components == {"street": "Bye Worlt"}

    def test_only_first_occurrence_replaced(self):
        components = {"road": "a-b-c"}
        apply_replacements(components, rules(["-", "+"]))

        assert components["road"] == "a+b-c"

    def test_exact_key_rule_only_touches_its_key(self):
        components = {"city": "Berlin-Mitte", "suburb": "Berlin-Mitte"}
        apply_replacements(components, rules(["city=Berlin-Mitte", "Berlin"]))

        assert components == {"city": "Berlin", "suburb": "Berlin-Mitte"}

    def test_exact_key_rule_needs_whole_value(self):
        components = {"city": "Berlin-Mitte Nord"}
        apply_replacements(components, rules(["city=Berlin-Mitte", "Berlin"]))

        assert components["city"] == "Berlin-Mitte Nord"

    def test_replacement_is_literal(self):
        components = {"road": "foo"}
        apply_replacements(components, rules(["foo", r"a\1b"]))

        assert components["road"] == r"a\1b"

    def test_emptied_component_is_removed(self):
        components = {"road": "Unnamed Road", "city": "Unnamed Road"}
        apply_replacements(components, rules(["road=Unnamed Road", ""]))

        assert components == {"city": "Unnamed Road"}

    def test_no_rules(self):
        components = {"road": "Main St"}
        assert apply_replacements(components, ()) == {"road": "Main St"}


class TestPostformat:

    def test_duplicate_segments_removed(self):
        assert dedupe_segments("Berlin, Berlin, Deutschland") == "Berlin, Deutschland"
        assert postformat("Berlin, Berlin, Deutschland\n", ()) == "Berlin, Deutschland\n"

    def test_backreferences(self):
        compiled = rules([r"\b(\d{5})(\d{3})\b", "$1-$2"], allow_exact_key=False)
        assert postformat("01310100 São Paulo", compiled) == "01310-100 São Paulo"

    def test_first_match_only(self):
        compiled = rules([r"(\d)", "<$1>"], allow_exact_key=False)
        assert postformat("1 2", compiled) == "<1> 2"

    def test_unmatched_group_is_empty(self):
        compiled = rules([r"(a)|(b)", "[$2]"], allow_exact_key=False)
        assert postformat("a", compiled) == "[]"

    def test_missing_group_is_empty(self):
        compiled = rules([r"(x)", "$1$3"], allow_exact_key=False)
        assert postformat("x", compiled) == "x"

    def test_no_match_leaves_text(self):
        compiled = rules(["nothing", "else"], allow_exact_key=False)
        assert postformat("Main St\n", compiled) == "Main St\n"

    @pytest.mark.parametrize("text", ["", "Main St\n", "a, b\nc\n"])
    def test_without_rules(self, text):
        assert postformat(text, ()) == text
