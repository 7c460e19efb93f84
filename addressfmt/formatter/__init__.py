"""
Address formatting pipeline.

normalize -> select template -> replace -> state code -> abbreviate ->
render -> postformat -> clean
"""

from .formatter import AddressFormatter, FormatTrace
from .clean import clean
from .components import (
    add_attention,
    clone_components,
    find_unknown_components,
    fix_country,
    merge_aliases,
    normalize_country_code,
    resolve_country,
    sanity_clean,
)
from .selector import has_minimal_components, select_template
from .substitution import apply_replacements, dedupe_segments, postformat
from .state_codes import add_state_code
from .abbreviate import abbreviate
from .renderer import TemplateCache, TemplateRenderer

__all__ = [
    "AddressFormatter",
    "FormatTrace",
    "clean",
    "add_attention",
    "clone_components",
    "find_unknown_components",
    "fix_country",
    "merge_aliases",
    "normalize_country_code",
    "resolve_country",
    "sanity_clean",
    "has_minimal_components",
    "select_template",
    "apply_replacements",
    "dedupe_segments",
    "postformat",
    "add_state_code",
    "abbreviate",
    "TemplateCache",
    "TemplateRenderer",
]
