"""
Template selection: primary template, or a fallback for sparse records.
"""

from typing import Iterable, Mapping, Optional, Tuple

from addressfmt.rules.store import CountryRules, RuleStore

DEFAULT_REQUIRED_COMPONENTS = ("road", "postcode")
DEFAULT_MINIMAL_THRESHOLD = 2

PRIMARY = "primary"
FALLBACK = "fallback"


def has_minimal_components(
    components: Mapping[str, str],
    required: Iterable[str] = DEFAULT_REQUIRED_COMPONENTS,
    threshold: int = DEFAULT_MINIMAL_THRESHOLD,
) -> bool:
    """False once `threshold` of the required components are missing."""
    missing = 0
    for name in required:
        if name not in components:
            missing += 1
            if missing >= threshold:
                return False
    return True


def select_template(
    rules: CountryRules,
    store: RuleStore,
    components: Mapping[str, str],
    required: Iterable[str] = DEFAULT_REQUIRED_COMPONENTS,
    threshold: int = DEFAULT_MINIMAL_THRESHOLD,
) -> Tuple[str, str]:
    """
    Pick the template text for a record.

    Args:
        rules: Country entry (already resolved to default if needed)
        store: Rule store, for the default fallback template
        components: Working components
        required: Components that make an address "minimal"
        threshold: How many of them may be missing before falling back

    Returns:
        (template text, PRIMARY or FALLBACK)
    """
    template: Optional[str] = rules.address_template or store.default.address_template

    if not has_minimal_components(components, required, threshold):
        if rules.fallback_template:
            return rules.fallback_template, FALLBACK
        if store.default.fallback_template:
            return store.default.fallback_template, FALLBACK

    return template, PRIMARY
