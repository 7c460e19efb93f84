"""
Tests for output cleaning and Mustache rendering.
"""

import pytest
import sys
from pathlib import Path

# Add package to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from addressfmt.formatter.clean import clean
from addressfmt.formatter.renderer import TemplateCache, TemplateRenderer


MESSY = [
    " abc,,def , ghi ",
    "Berlin\nBerlin\n",
    "a, b, a\nc",
    "",
    "  \n\n  x  \n\n",
    "a ,\n b",
    ", a\nb",
    ", ,  , Kreuzberg, Berlin, , , Deutschland\n",
    "\n\n301 Hamilton Ave\nPalo Alto, CA 94301\n\n",
    "a, a\na",
    "x,\n,y",
]


class TestClean:

    @pytest.mark.parametrize("text,expected", [
        (" abc,,def , ghi ", "abc, def, ghi\n"),
        ("Berlin\nBerlin\n", "Berlin\n"),
        ("a, b, a\nc", "a, b\nc\n"),
        ("", "\n"),
        ("  \n\n  x  \n\n", "x\n"),
        ("a ,\n b", "a\nb\n"),
        (", ,  , Kreuzberg, Berlin, , , Deutschland\n", "Kreuzberg, Berlin, Deutschland\n"),
        ("\n\n301 Hamilton Ave\nPalo Alto, CA 94301\n\n", "301 Hamilton Ave\nPalo Alto, CA 94301\n"),
    ])
    def test_clean(self, text, expected):
        assert clean(text) == expected

    def test_none(self):
        assert clean(None) == "\n"

    @pytest.mark.parametrize("text", MESSY)
    def test_idempotent(self, text):
        once = clean(text)
        assert clean(once) == once

    @pytest.mark.parametrize("text", MESSY)
    def test_single_trailing_newline(self, text):
        out = clean(text)
        assert out.endswith("\n")
        assert not out.endswith("\n\n")
        assert "\n\n" not in out


class TestTemplateRenderer:

    @pytest.fixture
    def renderer(self):
        return TemplateRenderer()

    def test_plain_substitution(self, renderer):
        out = renderer.render("{{{house_number}}} {{{road}}}", {"road": "Main St", "house_number": "5"})
        assert out == "5 Main St\n"

    def test_missing_components_render_empty(self, renderer):
        out = renderer.render("{{{road}}}, {{{city}}}", {"road": "Main St", "postcode": "1"})
        assert out == "Main St\n"

    def test_no_html_escaping(self, renderer):
        out = renderer.render("{{road}}", {"road": "Rue d'Alésia & <Co>", "city": "Paris"})
        assert out == "Rue d'Alésia & <Co>\n"

    def test_first_picks_first_non_blank(self, renderer):
        template = "{{#first}} {{{city}}} || {{{town}}} || {{{village}}} {{/first}}"

        assert renderer.render(template, {"town": "Smallville", "village": "V", "road": "R"}) == "Smallville\n"
        assert renderer.render(template, {"city": "Metropolis", "town": "Smallville"}) == "Metropolis\n"

    def test_first_with_nothing(self, renderer):
        template = "{{{road}}} {{#first}} {{{city}}} || {{{town}}} {{/first}}"
        assert renderer.render(template, {"road": "Main St", "postcode": "1"}) == "Main St\n"

    def test_first_candidates_may_combine_components(self, renderer):
        template = "{{#first}} {{{city}}} {{{postcode}}} || {{{town}}} {{/first}}"
        assert renderer.render(template, {"postcode": "10115", "town": "T"}) == "10115\n"

    def test_values_are_not_rendered_as_templates(self, renderer):
        components = {"road": "{{city}}", "city": "X"}

        assert renderer.render("{{{road}}}", components) == "{{city}}\n"
        assert renderer.render("{{#first}} {{{road}}} || {{{city}}} {{/first}}", components) == "{{city}}\n"

    def test_single_component_fallback(self, renderer):
        assert renderer.render("{{{road}}}", {"city": "***"}) == "***"

    def test_no_fallback_with_several_components(self, renderer):
        assert renderer.render("{{{road}}}", {"city": "***", "state": "+++"}) == "\n"

    def test_empty_components(self, renderer):
        assert renderer.render("{{{road}}}, {{{city}}}", {}) == "\n"

    def test_render_raw_does_not_clean(self, renderer):
        assert renderer.render_raw("{{{road}}},,  {{{city}}}", {"road": "A"}) == "A,,  "


class TestTemplateCache:

    def test_template_compiled_once(self):
        cache = TemplateCache()
        renderer = TemplateRenderer(cache)
        template = "{{{road}}} {{{house_number}}}"

        renderer.render(template, {"road": "A", "house_number": "1"})
        assert template in cache
        size = len(cache)

        renderer.render(template, {"road": "B", "house_number": "2"})
        assert len(cache) == size

        assert cache.get(template) is cache.get(template)

    def test_first_candidates_are_cached(self):
        cache = TemplateCache()
        renderer = TemplateRenderer(cache)

        renderer.render("{{#first}} {{{city}}} || {{{town}}} {{/first}}", {"town": "T"})
        assert "{{{city}}}" in cache
        assert "{{{town}}}" in cache

    def test_private_cache_by_default(self):
        first, second = TemplateRenderer(), TemplateRenderer(None)

        assert isinstance(first.cache, TemplateCache)
        assert first.cache is not second.cache

    def test_shared_cache(self):
        cache = TemplateCache()
        TemplateRenderer(cache).render("{{{road}}}", {"road": "A"})

        assert "{{{road}}}" in TemplateRenderer(cache).cache
