"""
Component normalization: cloning, aliases, sanity cleaning and country
code resolution (including dependent territories).

All functions work on the per-call copy of the components and mutate it in
place. None of them raise on bad data; invalid values are dropped.
"""

import copy
import logging
import re
from typing import Any, Dict, List, Mapping, Optional

from addressfmt.rules.store import RuleStore


logger = logging.getLogger(__name__)

# components that add_component may set
VALID_REPLACEMENT_COMPONENTS = frozenset({"state"})

_COUNTRY_CODE_RE = re.compile(r"[a-z]{2}")
_URL_RE = re.compile(r"https?://")
_POSTCODE_RANGE_RE = re.compile(r"\d+;\d+")
_POSTCODE_PAIR_RE = re.compile(r"^(\d{5}),\d{5}")
_PLACEHOLDER_RE = re.compile(r"\$(\w*)")
_NUMBER_RE = re.compile(r"^\s*[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?\s*$")

MAX_POSTCODE_LENGTH = 20


def clone_components(components: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """
    Deep copy caller input into a fresh str -> str dict.

    None and empty values are dropped, everything else is stringified.
    """
    out: Dict[str, str] = {}
    if not components:
        return out

    for key, value in copy.deepcopy(dict(components)).items():
        if value is None:
            continue
        text = value if isinstance(value, str) else str(value)
        if text == "":
            continue
        out[str(key)] = text
    return out


def merge_aliases(components: Dict[str, str], aliases: Mapping[str, str]) -> Dict[str, str]:
    """Copy alias values into their canonical key, unless that key is already set."""
    for alias in sorted(aliases):
        canonical = aliases[alias]
        if alias in components and canonical not in components:
            components[canonical] = components[alias]
    return components


def sanity_clean(components: Dict[str, str]) -> Dict[str, str]:
    """Drop values that are clearly broken (long postcodes, ranges, URLs)."""
    postcode = components.get("postcode")
    if postcode is not None:
        if len(postcode) > MAX_POSTCODE_LENGTH:
            del components["postcode"]
        elif _POSTCODE_RANGE_RE.search(postcode):
            # sometimes OSM has postcode ranges
            del components["postcode"]
        else:
            m = _POSTCODE_PAIR_RE.match(postcode)
            if m:
                components["postcode"] = m.group(1)

    for key in [k for k, v in components.items() if _URL_RE.search(v)]:
        del components[key]

    return components


def normalize_country_code(value: Optional[str]) -> Optional[str]:
    """Two letters, case-insensitive; 'uk' becomes 'GB'. Anything else is None."""
    if not value:
        return None
    cc = value.lower()
    if not _COUNTRY_CODE_RE.fullmatch(cc):
        return None
    if cc == "uk":
        return "GB"
    return cc.upper()


def _interpolate_country(template: str, components: Mapping[str, str]) -> str:
    """Replace the first $component placeholder with its value (or nothing)."""
    return _PLACEHOLDER_RE.sub(lambda m: components.get(m.group(1), ""), template, count=1)


def resolve_country(components: Dict[str, str], store: RuleStore) -> Optional[str]:
    """
    Determine the country code used for formatting.

    Dependent territories (use_country) borrow another country's rules and
    may rewrite 'country' and add a 'state'. Territory overrides then switch
    the code based on component values (e.g. NL + state Aruba -> AW).

    Args:
        components: Working components, updated in place
        store: Rule store

    Returns:
        Uppercase country code, or None when no valid code is present
    """
    cc = normalize_country_code(components.get("country_code"))
    if cc is None:
        return None

    rules = store.get_rules(cc)
    if rules is not None and rules.use_country:
        target = rules.use_country
        target_rules = store.get_rules(target)
        if target_rules is not None and target_rules.use_country:
            logger.warning(
                f"Country {cc} redirects to {target}, which redirects to "
                f"{target_rules.use_country}; only one redirect is followed"
            )
        logger.debug(f"Country {cc} uses the rules of {target}")

        if rules.change_country is not None:
            components["country"] = _interpolate_country(rules.change_country, components)

        if rules.add_component is not None:
            key, _, value = rules.add_component.partition("=")
            if key in VALID_REPLACEMENT_COMPONENTS:
                components[key] = value
            else:
                logger.debug(f"Ignoring add_component for non-whitelisted key '{key}'")

        cc = target

    for override in store.territory_overrides:
        if override.matches(cc, components):
            logger.debug(f"Territory override {cc} -> {override.code}")
            cc = override.code
            components["country"] = override.country_name
            break

    return cc


def fix_country(components: Dict[str, str]) -> Dict[str, str]:
    """A numeric 'country' is bad data; use the state as country instead."""
    country = components.get("country")
    if country is not None and "state" in components and _NUMBER_RE.match(country):
        components["country"] = components.pop("state")
    return components


def find_unknown_components(components: Mapping[str, str], store: RuleStore) -> List[str]:
    """Keys outside the known component vocabulary, in lexical order."""
    known = store.known_components
    return [key for key in sorted(components) if key not in known]


def add_attention(components: Dict[str, str], store: RuleStore) -> Dict[str, str]:
    """Collect unknown components into 'attention' so they are not lost."""
    unknown = find_unknown_components(components, store)
    if unknown:
        components["attention"] = ", ".join(components[key] for key in unknown)
    return components
