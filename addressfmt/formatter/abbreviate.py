"""
Language-aware abbreviation of component values ("Avenue" -> "Ave").
"""

import logging
from typing import Dict

from addressfmt.rules.store import RuleStore


logger = logging.getLogger(__name__)


def abbreviate(components: Dict[str, str], store: RuleStore) -> bool:
    """
    Apply the abbreviation tables of every language spoken in the country.

    Languages come from country2lang in order and apply cumulatively. Each
    (long, short) pair replaces the first whole-word, case-sensitive match.

    Args:
        components: Working components, updated in place
        store: Rule store

    Returns:
        False when no country code is known (nothing changed), else True
    """
    country_code = components.get("country_code")
    if not country_code:
        logger.warning("Unable to determine country, thus unable to abbreviate")
        return False

    for lang in store.country2lang.get(country_code.upper(), ()):
        table = store.abbreviations.get(lang)
        if table is None:
            logger.debug(f"No abbreviations defined for language '{lang}'")
            continue

        for component, pairs in table.items():
            if component not in components:
                continue
            value = components[component]
            for regex, short in pairs:
                value = regex.sub(lambda _m, s=short: s, value, count=1)
            components[component] = value

    return True
