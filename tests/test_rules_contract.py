"""
Contract tests for the bundled address rules.

Validates that the shipped rule files conform to schema and have the
content the formatter relies on. These tests ensure bad rule edits don't
silently break formatting.
"""

import pytest
import sys
from pathlib import Path

# Add package to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pystache

from addressfmt.config import DEFAULT_CONF_DIR
from addressfmt.rules import RuleStoreLoader
from addressfmt.rules.store import ExactKeyRule, PatternRule


class TestBundledRuleContracts:
    """Contract tests for the rules shipped with the package."""

    @pytest.fixture
    def loader(self):
        """Create strict rule loader for the bundled rules."""
        return RuleStoreLoader(DEFAULT_CONF_DIR, strict=True)

    @pytest.fixture
    def store(self, loader):
        return loader.load()

    def test_bundled_rules_load_successfully(self, store):
        """Test that the bundled rules load in strict mode with a default entry."""
        assert "default" in store.templates
        assert store.default.address_template, "default entry must have an address_template"
        assert store.default.fallback_template, "default entry should have a fallback_template"

        for code in ["DE", "US", "GB", "BR", "CA", "NL", "FR"]:
            assert code in store.templates, f"Missing country entry: {code}"

    def test_no_validation_problems(self, loader):
        """Test that no entry has broken redirects, missing templates or bad regexes."""
        problems = loader.validate_all()
        assert not problems, f"Rule problems found: {problems}"

    def test_no_skipped_rules(self, store):
        assert store.warnings == (), f"Skipped rules: {[str(w) for w in store.warnings]}"

    def test_all_templates_parse(self, store):
        """Test that every template is valid Mustache."""
        for code, rules in store.templates.items():
            for template in (rules.address_template, rules.fallback_template):
                if template:
                    pystache.parse(template)

    def test_dependent_territories_point_at_real_entries(self, store):
        for code in ["AX", "BQ", "PR", "VI"]:
            rules = store.templates[code]
            assert rules.use_country, f"{code} should borrow another country's rules"
            target = store.templates.get(rules.use_country)
            assert target is not None, f"{code} -> {rules.use_country} has no entry"
            assert target.use_country is None, f"{code} -> {rules.use_country} is chained"

    def test_replace_rules_compiled_by_kind(self, store):
        """Test that 'key=value' rules become exact-key rules and the rest patterns."""
        de_rules = store.templates["DE"].replace
        exact = [r for r in de_rules if isinstance(r, ExactKeyRule)]
        patterns = [r for r in de_rules if isinstance(r, PatternRule)]

        assert exact and exact[0].key == "city" and exact[0].value == "Berlin-Mitte"
        assert any(r.pattern == "^Stadtteil " for r in patterns)

    def test_postformat_rules_are_never_exact_key(self, store):
        for code, rules in store.templates.items():
            for rule in rules.postformat_replace:
                assert isinstance(rule, PatternRule), f"{code} postformat rule is not a pattern"

    def test_component_vocabulary(self, store):
        """Test canonical components and aliases."""
        for name in ["attention", "house", "house_number", "road", "postcode", "city", "state", "country"]:
            assert name in store.known_components, f"Missing component: {name}"

        assert store.component_aliases["street"] == "road"
        assert store.component_aliases["province"] == "state"
        # aliases count as known, so they never end up in attention
        assert "street" in store.known_components
        # computed once when the store is built
        assert store.known_components is store.known_components
        assert store.known_components == frozenset(store.ordered_components)

        # canonical order is preserved
        order = list(store.ordered_components)
        assert order.index("house_number") < order.index("road") < order.index("postcode")

    def test_state_code_tables(self, store):
        assert store.state_codes["US"]["CA"] == ("California",)
        assert "Québec" in store.state_codes["CA"]["QC"]
        # YAML 1.1 would read an unquoted ON as a boolean
        assert "ON" in store.state_codes["CA"]

    def test_languages_and_abbreviations(self, store):
        assert store.country2lang["CA"] == ("en", "fr")
        assert store.country2lang["US"] == ("en",)

        for lang in ["en", "de", "fr"]:
            assert lang in store.abbreviations, f"Missing abbreviation table: {lang}"
        assert "road" in store.abbreviations["en"]
