"""
Address formatter: structured components in, country formatted text out.

Usage:
    from addressfmt import AddressFormatter

    formatter = AddressFormatter.from_path("/path/to/conf")
    text = formatter.format({"road": "Warschauer Straße", ...})
    short = formatter.format(components, country="US", abbreviate=True)
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from addressfmt.config import FormatterConfig
from addressfmt.rules.loader import RuleStoreLoader
from addressfmt.rules.store import RuleStore
from addressfmt.telemetry.format_metrics import FormatMetrics
from .abbreviate import abbreviate as abbreviate_components
from .clean import clean
from .components import (
    add_attention,
    clone_components,
    fix_country,
    merge_aliases,
    normalize_country_code,
    resolve_country,
    sanity_clean,
)
from .renderer import TemplateCache, TemplateRenderer
from .selector import select_template
from .state_codes import add_state_code
from .substitution import apply_replacements, postformat


logger = logging.getLogger(__name__)


@dataclass
class FormatTrace:
    """Result of one format call plus the decisions that led to it."""
    text: str
    country_code: Optional[str]
    template: str
    abbreviated: bool = False
    components: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "formatted": self.text,
            "country_code": self.country_code,
            "template": self.template,
            "abbreviated": self.abbreviated,
            "components": dict(self.components),
        }


class AddressFormatter:
    """Formats address components according to country rules."""

    def __init__(
        self,
        store: Optional[RuleStore] = None,
        config: Optional[FormatterConfig] = None,
        metrics: Optional[FormatMetrics] = None,
    ):
        """
        Initialize formatter.

        Args:
            store: Rule store (loaded from config.conf_dir when omitted)
            config: Formatter configuration (defaults to env-based config)
            metrics: Optional telemetry collector
        """
        self.config = config or FormatterConfig.from_env()
        if store is None:
            store = RuleStoreLoader(self.config.conf_dir, strict=self.config.strict).load()
        self.store = store
        self.metrics = metrics
        self.cache = TemplateCache()
        self.renderer = TemplateRenderer(self.cache)

    @classmethod
    def from_path(cls, conf_dir: Union[str, Path], strict: bool = True, **kwargs) -> "AddressFormatter":
        """Build a formatter from a rule directory."""
        store = RuleStoreLoader(conf_dir, strict=strict).load()
        return cls(store=store, **kwargs)

    def format(
        self,
        components: Mapping[str, Any],
        country: Optional[str] = None,
        abbreviate: bool = False,
    ) -> str:
        """
        Format an address.

        Args:
            components: Address components (road, house_number, city, ...)
            country: ISO 3166-1 alpha-2 code used as is instead of detecting
                the country from the record (no territory redirects)
            abbreviate: Apply language specific abbreviations

        Returns:
            Formatted address ending with a single newline
        """
        return self.format_with_trace(components, country=country, abbreviate=abbreviate).text

    # same as format()
    format_address = format

    def format_with_trace(
        self,
        components: Mapping[str, Any],
        country: Optional[str] = None,
        abbreviate: bool = False,
    ) -> FormatTrace:
        """Like format(), but also return the resolved country and template."""
        store = self.store
        working = clone_components(components)

        cc = normalize_country_code(country) if country else None
        if cc:
            # an explicit country replaces detection, including territory overrides
            working["country_code"] = cc
        else:
            if country:
                logger.warning(f"Ignoring invalid country option '{country}'")
            cc = resolve_country(working, store)
            if cc:
                working["country_code"] = cc

        merge_aliases(working, store.component_aliases)
        sanity_clean(working)

        rules = store.rules_for(cc)
        template_text, template_kind = select_template(
            rules,
            store,
            working,
            required=self.config.required_components,
            threshold=self.config.minimal_threshold,
        )

        fix_country(working)
        apply_replacements(working, rules.replace)
        add_state_code(working, store)
        add_attention(working, store)

        abbreviated = False
        if abbreviate:
            abbreviated = abbreviate_components(working, store)

        text = self.renderer.render(template_text, working)
        text = postformat(text, rules.postformat_replace)
        text = clean(text)

        logger.debug(f"Formatted address for {cc or 'default'} using {template_kind} template")
        if self.metrics is not None:
            self.metrics.record_format(cc, template_kind, abbreviated)

        return FormatTrace(
            text=text,
            country_code=cc,
            template=template_kind,
            abbreviated=abbreviated,
            components=working,
        )
