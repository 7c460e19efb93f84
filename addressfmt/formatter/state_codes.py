"""
State code resolution: "California" -> "CA" using the state code table.
"""

import re
from typing import Dict, Optional

from addressfmt.rules.store import RuleStore

_US_PREFIX_RE = re.compile(r"^united states", re.IGNORECASE)


def _lookup(state: str, mapping: Dict[str, tuple]) -> Optional[str]:
    wanted = state.upper()
    for code, names in mapping.items():
        if any(wanted == name.upper() for name in names):
            return code
    return None


def add_state_code(components: Dict[str, str], store: RuleStore) -> Optional[str]:
    """
    Set 'state_code' from 'state' when the country has a state code table.

    Args:
        components: Working components, updated in place
        store: Rule store

    Returns:
        The state code (existing or newly found), or None
    """
    if components.get("state_code"):
        return components["state_code"]
    state = components.get("state")
    if not state or not components.get("country_code"):
        return None

    country_code = components["country_code"].upper()
    components["country_code"] = country_code

    mapping = store.state_codes.get(country_code)
    if not mapping:
        return None

    code = _lookup(state, mapping)

    # odd variants like "United States Virgin Islands"
    if code is None and country_code == "US" and _US_PREFIX_RE.match(state):
        code = _lookup(_US_PREFIX_RE.sub("US", state, count=1), mapping)

    if code is not None:
        components["state_code"] = code
    return code
