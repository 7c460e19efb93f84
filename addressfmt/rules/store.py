"""
In-memory rule store.

Holds everything the formatter needs once the rule files are parsed:
country templates with pre-compiled replacement rules, component aliases,
state codes, languages per country and abbreviation tables. A RuleStore is
built once and never mutated afterwards, so it can be shared by any number
of formatters and threads.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from addressfmt.errors import ConfigurationError, RuleWarning
from .schema import ComponentModel, CountryTemplateModel, TerritoryOverrideModel


logger = logging.getLogger(__name__)

DEFAULT_KEY = "default"

# "road=Unnamed Road" style rules only apply to the named component
_EXACT_KEY_RE = re.compile(r"^([A-Za-z_]\w*)=(.*)$", re.DOTALL)


@dataclass(frozen=True)
class ExactKeyRule:
    """Replace the whole value of one component when it equals `value`."""
    key: str
    value: str
    replacement: str


@dataclass(frozen=True)
class PatternRule:
    """Regex substitution (first occurrence) on any component or on output."""
    regex: re.Pattern
    replacement: str

    @property
    def pattern(self) -> str:
        return self.regex.pattern


Rule = Union[ExactKeyRule, PatternRule]


@dataclass(frozen=True)
class CountryRules:
    """Compiled form of one countries/*.yaml entry."""
    code: str
    address_template: Optional[str] = None
    fallback_template: Optional[str] = None
    replace: Tuple[Rule, ...] = ()
    postformat_replace: Tuple[PatternRule, ...] = ()
    use_country: Optional[str] = None
    change_country: Optional[str] = None
    add_component: Optional[str] = None


@dataclass(frozen=True)
class TerritoryOverride:
    """
    Value-dependent country switch applied after the primary resolution.

    Example: a Dutch record whose state is "Aruba" is formatted as AW.
    """
    country: str
    component: str
    regex: re.Pattern
    code: str
    country_name: str

    def matches(self, country_code: str, components: Mapping[str, str]) -> bool:
        if country_code != self.country:
            return False
        value = components.get(self.component)
        if value is None:
            return False
        return self.regex.search(value) is not None


DEFAULT_TERRITORY_OVERRIDES: Tuple[TerritoryOverride, ...] = (
    TerritoryOverride("NL", "state", re.compile(r"^curaçao$", re.IGNORECASE), "CW", "Curaçao"),
    TerritoryOverride("NL", "state", re.compile(r"^sint maarten", re.IGNORECASE), "SX", "Sint Maarten"),
    TerritoryOverride("NL", "state", re.compile(r"^aruba", re.IGNORECASE), "AW", "Aruba"),
)


def compile_rules(
    raw_rules: Iterable[Iterable[str]],
    source: str,
    allow_exact_key: bool = True,
) -> Tuple[Tuple[Rule, ...], List[RuleWarning]]:
    """
    Compile [pattern, replacement] pairs into tagged rules.

    Args:
        raw_rules: Ordered list of [pattern, replacement] pairs
        source: Human readable origin, used in warnings (e.g. 'DE.replace')
        allow_exact_key: Whether 'key=literal' patterns become ExactKeyRule

    Returns:
        (compiled rules in original order, warnings for skipped rules)
    """
    rules: List[Rule] = []
    warnings: List[RuleWarning] = []

    for pattern, replacement in raw_rules:
        if allow_exact_key:
            m = _EXACT_KEY_RE.match(pattern)
            if m:
                rules.append(ExactKeyRule(key=m.group(1), value=m.group(2), replacement=replacement))
                continue
        try:
            rules.append(PatternRule(regex=re.compile(pattern), replacement=replacement))
        except re.error as e:
            warning = RuleWarning(source=source, pattern=pattern, error=str(e))
            logger.warning(f"Skipping invalid replacement rule: {warning}")
            warnings.append(warning)

    return tuple(rules), warnings


def _as_names(value: Any) -> Tuple[str, ...]:
    """State code values may be a name, a list of names or a dict of variants."""
    if value is None:
        return ()
    if isinstance(value, dict):
        return tuple(str(v) for v in value.values() if v is not None)
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value if v is not None)
    return (str(value),)


@dataclass(frozen=True)
class RuleStore:
    """Read-only lookup tables for the formatter."""
    templates: Dict[str, CountryRules]
    component_aliases: Dict[str, str] = field(default_factory=dict)
    ordered_components: Tuple[str, ...] = ()
    state_codes: Dict[str, Dict[str, Tuple[str, ...]]] = field(default_factory=dict)
    country2lang: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    abbreviations: Dict[str, Dict[str, Tuple[Tuple[re.Pattern, str], ...]]] = field(default_factory=dict)
    territory_overrides: Tuple[TerritoryOverride, ...] = DEFAULT_TERRITORY_OVERRIDES
    warnings: Tuple[RuleWarning, ...] = ()
    known_components: FrozenSet[str] = field(init=False, default=frozenset())

    def __post_init__(self):
        default = self.templates.get(DEFAULT_KEY)
        if default is None or not default.address_template:
            raise ConfigurationError("Rule set has no 'default' entry with an address_template")
        object.__setattr__(self, "known_components", frozenset(self.ordered_components))

    @property
    def default(self) -> CountryRules:
        return self.templates[DEFAULT_KEY]

    def get_rules(self, country_code: Optional[str]) -> Optional[CountryRules]:
        if not country_code:
            return None
        return self.templates.get(country_code.upper())

    def rules_for(self, country_code: Optional[str]) -> CountryRules:
        """Country entry, or the default entry when the country is unknown."""
        return self.get_rules(country_code) or self.default

    @classmethod
    def from_tables(
        cls,
        templates: Mapping[str, Mapping[str, Any]],
        components: Iterable[Mapping[str, Any]] = (),
        state_codes: Optional[Mapping[str, Mapping[str, Any]]] = None,
        country2lang: Optional[Mapping[str, str]] = None,
        abbreviations: Optional[Mapping[str, Mapping[str, Mapping[str, str]]]] = None,
        territory_overrides: Optional[Iterable[Mapping[str, Any]]] = None,
        strict: bool = True,
    ) -> "RuleStore":
        """
        Build a store from already parsed tables.

        Args:
            templates: country code (or 'default') -> country entry
            components: [{'name': ..., 'aliases': [...]}, ...] in canonical order
            state_codes: country code -> {state code -> name}
            country2lang: country code -> 'en,fr'
            abbreviations: lang -> {component -> {long -> short}}
            territory_overrides: replaces DEFAULT_TERRITORY_OVERRIDES when given
            strict: raise ConfigurationError on schema violations instead of skipping

        Returns:
            RuleStore
        """
        warnings: List[RuleWarning] = []

        compiled: Dict[str, CountryRules] = {}
        for key, entry in templates.items():
            code = key if key == DEFAULT_KEY else key.upper()
            try:
                model = CountryTemplateModel(**entry)
            except (ValidationError, TypeError) as e:
                _fail_or_log(strict, f"Invalid country entry '{key}': {e}")
                continue

            replace, replace_warnings = compile_rules(model.replace, f"{code}.replace")
            postformat, post_warnings = compile_rules(
                model.postformat_replace, f"{code}.postformat_replace", allow_exact_key=False
            )
            warnings.extend(replace_warnings)
            warnings.extend(post_warnings)

            compiled[code] = CountryRules(
                code=code,
                address_template=model.address_template,
                fallback_template=model.fallback_template,
                replace=replace,
                postformat_replace=postformat,
                use_country=model.use_country,
                change_country=model.change_country,
                add_component=model.add_component,
            )

        aliases: Dict[str, str] = {}
        ordered: List[str] = []
        for item in components:
            try:
                component = ComponentModel(**item)
            except (ValidationError, TypeError) as e:
                _fail_or_log(strict, f"Invalid component definition {item!r}: {e}")
                continue
            ordered.append(component.name)
            for alias in component.aliases:
                aliases[alias] = component.name
                ordered.append(alias)

        codes: Dict[str, Dict[str, Tuple[str, ...]]] = {}
        for country, mapping in (state_codes or {}).items():
            if not isinstance(mapping, Mapping):
                _fail_or_log(strict, f"Invalid state code table for '{country}'")
                continue
            codes[str(country).upper()] = {str(code): _as_names(name) for code, name in mapping.items()}

        langs: Dict[str, Tuple[str, ...]] = {}
        for country, value in (country2lang or {}).items():
            langs[str(country).upper()] = tuple(
                lang.strip().lower() for lang in str(value).split(",") if lang.strip()
            )

        abbrv: Dict[str, Dict[str, Tuple[Tuple[re.Pattern, str], ...]]] = {}
        for lang, per_component in (abbreviations or {}).items():
            if not isinstance(per_component, Mapping):
                _fail_or_log(strict, f"Invalid abbreviation table for language '{lang}'")
                continue
            abbrv[str(lang).lower()] = {
                str(component): tuple(
                    (re.compile(r"\b" + re.escape(str(long)) + r"\b"), str(short))
                    for long, short in (pairs or {}).items()
                )
                for component, pairs in per_component.items()
            }

        overrides = DEFAULT_TERRITORY_OVERRIDES
        if territory_overrides is not None:
            parsed = []
            for item in territory_overrides:
                try:
                    model = TerritoryOverrideModel(**item)
                except (ValidationError, TypeError) as e:
                    _fail_or_log(strict, f"Invalid territory override {item!r}: {e}")
                    continue
                parsed.append(TerritoryOverride(
                    country=model.country,
                    component=model.component,
                    regex=re.compile(model.pattern, re.IGNORECASE),
                    code=model.code,
                    country_name=model.country_name,
                ))
            overrides = tuple(parsed)

        return cls(
            templates=compiled,
            component_aliases=aliases,
            ordered_components=tuple(ordered),
            state_codes=codes,
            country2lang=langs,
            abbreviations=abbrv,
            territory_overrides=overrides,
            warnings=tuple(warnings),
        )


def _fail_or_log(strict: bool, message: str) -> None:
    if strict:
        raise ConfigurationError(message)
    logger.error(message)
