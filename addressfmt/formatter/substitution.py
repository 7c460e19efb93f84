"""
Text substitution: country replace rules on component values before
rendering, and postformat rules on the rendered text.
"""

import re
from typing import Dict, Iterable, List

from addressfmt.rules.store import ExactKeyRule, PatternRule, Rule


_BACKREF_RE = re.compile(r"\$\d")


def apply_replacements(components: Dict[str, str], rules: Iterable[Rule]) -> Dict[str, str]:
    """
    Apply replace rules to every component value.

    Rules run in list order, each one once per component. Exact-key rules
    only touch their own component and only on an exact value match; pattern
    rules replace the first match.
    """
    rules = list(rules)
    if not rules:
        return components

    for key in sorted(components):
        value = components[key]
        for rule in rules:
            if isinstance(rule, ExactKeyRule):
                if rule.key == key and value == rule.value:
                    value = rule.replacement
            else:
                value = rule.regex.sub(lambda _m, r=rule.replacement: r, value, count=1)

        if value:
            components[key] = value
        else:
            # a rule emptied it; absent rather than ""
            del components[key]

    return components


def dedupe_segments(text: str) -> str:
    """Drop repeated ", " separated pieces ("Berlin, Berlin" -> "Berlin")."""
    seen = set()
    pieces: List[str] = []
    for piece in text.split(", "):
        piece = piece.lstrip()
        if piece in seen:
            continue
        seen.add(piece)
        pieces.append(piece)
    return ", ".join(pieces)


def _bind_backrefs(replacement: str, match: re.Match) -> str:
    """Fill $1, $2 and $3 (first occurrence each) from the match groups."""
    for index in (1, 2, 3):
        placeholder = f"${index}"
        if placeholder not in replacement:
            continue
        group = match.group(index) if index <= (match.re.groups or 0) else None
        replacement = replacement.replace(placeholder, group or "", 1)
    return replacement


def postformat(text: str, rules: Iterable[PatternRule]) -> str:
    """
    Remove duplicate segments and apply postformat rules to rendered text.

    Args:
        text: Rendered (and cleaned) address
        rules: Ordered postformat rules of the country

    Returns:
        Text with the first match of each rule replaced
    """
    text = dedupe_segments(text)

    for rule in rules:
        match = rule.regex.search(text)
        if match is None:
            continue

        replacement = rule.replacement
        if _BACKREF_RE.search(replacement):
            replacement = _bind_backrefs(replacement, match)

        text = text[:match.start()] + replacement + text[match.end():]

    return text
