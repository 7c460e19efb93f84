"""
Rule store for address formatting.

Country templates, replacement rules, state codes and abbreviations are
loaded once from YAML and kept in an immutable RuleStore.
"""

from .loader import RuleStoreLoader
from .store import (
    CountryRules,
    ExactKeyRule,
    PatternRule,
    RuleStore,
    TerritoryOverride,
    compile_rules,
)
from .schema import CountryTemplateModel, ComponentModel, TerritoryOverrideModel

__all__ = [
    "RuleStoreLoader",
    "RuleStore",
    "CountryRules",
    "ExactKeyRule",
    "PatternRule",
    "TerritoryOverride",
    "compile_rules",
    "CountryTemplateModel",
    "ComponentModel",
    "TerritoryOverrideModel",
]
