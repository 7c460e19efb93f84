"""
Mustache template rendering with the "first" helper.

Templates use the address-formatting convention:

    {{{house_number}}} {{{road}}}
    {{#first}} {{{city}}} || {{{town}}} || {{{village}}} {{/first}}

`first` renders each "||" separated candidate against the same components
and keeps the first one that is not blank.
"""

import logging
import re
import threading
from typing import Callable, Dict, Mapping, Optional

import pystache
from pystache.parsed import ParsedTemplate

from .clean import clean


logger = logging.getLogger(__name__)

FIRST_SEPARATOR = "||"

_WORD_RE = re.compile(r"\w")


class TemplateCache:
    """
    Compiled templates keyed by template text.

    Append-only and shared by all calls of one formatter. Two threads may
    compile the same text at the same time; one result simply wins.
    """

    def __init__(self):
        self._compiled: Dict[str, ParsedTemplate] = {}
        self._lock = threading.Lock()

    def get(self, template_text: str) -> ParsedTemplate:
        compiled = self._compiled.get(template_text)
        if compiled is None:
            compiled = pystache.parse(template_text)
            with self._lock:
                compiled = self._compiled.setdefault(template_text, compiled)
            logger.debug(f"Compiled template ({len(self._compiled)} cached)")
        return compiled

    def __contains__(self, template_text: str) -> bool:
        return template_text in self._compiled

    def __len__(self) -> int:
        return len(self._compiled)


class TemplateRenderer:
    """Renders address templates against a components mapping."""

    def __init__(self, cache: Optional[TemplateCache] = None):
        """
        Args:
            cache: Template cache to use (a private one by default)
        """
        self.cache = cache if cache is not None else TemplateCache()
        # address text is not HTML
        self._renderer = pystache.Renderer(escape=lambda u: u, missing_tags="ignore")

    def _first(self, components: Mapping[str, str]) -> Callable[[str], str]:
        def first(body: str) -> str:
            for candidate in body.split(FIRST_SEPARATOR):
                candidate = candidate.strip()
                if not candidate:
                    continue
                rendered = self._renderer.render(self.cache.get(candidate), components)
                if rendered.strip():
                    # returned text is rendered by pystache in the same context
                    return candidate
            return ""
        return first

    def render_raw(self, template_text: str, components: Mapping[str, str]) -> str:
        """Render without any cleaning."""
        compiled = self.cache.get(template_text)
        return self._renderer.render(compiled, components, {"first": self._first(components)})

    def render(self, template_text: str, components: Mapping[str, str]) -> str:
        """
        Render and clean a template.

        If the result has no word characters and only one component is
        present, that component's value is returned instead.
        """
        output = clean(self.render_raw(template_text, components))

        if not _WORD_RE.search(output) and len(components) == 1:
            output = next(iter(components.values()))

        return output
