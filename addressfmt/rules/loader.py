"""
Rule set loader with validation and caching.

Loads the YAML rule directory, validates it against the schema and builds
an immutable RuleStore. Expected layout:

    <conf_dir>/countries/*.yaml          country templates (later files win)
    <conf_dir>/components.yaml           canonical components and aliases
    <conf_dir>/state_codes.yaml          optional
    <conf_dir>/country2lang.yaml         optional
    <conf_dir>/abbreviations/<lang>.yaml optional
    <conf_dir>/territory_overrides.yaml  optional
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from addressfmt.config import FormatterConfig
from addressfmt.errors import ConfigurationError
from .store import DEFAULT_KEY, RuleStore


logger = logging.getLogger(__name__)

_LANG_FILE_RE = re.compile(r"^([a-z]{2})\.yaml$")


class RuleStoreLoader:
    """Loads and caches the rule store for one configuration directory."""

    def __init__(self, conf_dir: Optional[Union[str, Path]] = None, strict: Optional[bool] = None):
        """
        Initialize rule loader.

        Args:
            conf_dir: Directory containing the rule files (defaults to config)
            strict: Whether broken files raise instead of being skipped
        """
        if not conf_dir or strict is None:
            config = FormatterConfig.from_env()
            conf_dir = conf_dir or config.conf_dir
            strict = config.strict if strict is None else strict
        self.conf_dir = Path(conf_dir)
        self.strict = strict
        self._store: Optional[RuleStore] = None

    def load(self) -> RuleStore:
        """Load all rule files. Cached after the first call."""
        if self._store is not None:
            return self._store

        if not self.conf_dir.exists():
            raise ConfigurationError(f"Rule directory not found: {self.conf_dir}")

        templates = self._load_countries()
        if DEFAULT_KEY not in templates:
            raise ConfigurationError(f"No '{DEFAULT_KEY}' country entry found in {self.conf_dir / 'countries'}")

        store = RuleStore.from_tables(
            templates=templates,
            components=self._load_components(),
            state_codes=self._load_optional_mapping("state_codes.yaml"),
            country2lang=self._load_optional_mapping("country2lang.yaml"),
            abbreviations=self._load_abbreviations(),
            territory_overrides=self._load_territory_overrides(),
            strict=self.strict,
        )

        if store.warnings:
            logger.warning(f"{len(store.warnings)} replacement rules skipped in {self.conf_dir}")
        logger.info(
            f"Loaded {len(store.templates)} country entries, "
            f"{len(store.component_aliases)} component aliases, "
            f"{len(store.abbreviations)} abbreviation languages from {self.conf_dir}"
        )

        self._store = store
        return store

    def reload(self) -> RuleStore:
        """Reload all rule files from disk."""
        self._store = None
        store = self.load()
        logger.info("Rule store reloaded")
        return store

    def _read_yaml(self, path: Path, multi: bool = False) -> Any:
        """Read one YAML file, honouring strict mode. Returns None when skipped."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                if multi:
                    return [doc for doc in yaml.safe_load_all(f) if doc is not None]
                return yaml.safe_load(f)
        except yaml.YAMLError as e:
            error_msg = f"Invalid YAML in {path}: {e}"
        except OSError as e:
            error_msg = f"Failed to read {path}: {e}"

        if self.strict:
            raise ConfigurationError(error_msg)
        logger.error(error_msg)
        return None

    def _load_countries(self) -> Dict[str, Dict[str, Any]]:
        countries_dir = self.conf_dir / "countries"
        if not countries_dir.exists():
            raise ConfigurationError(f"Country directory not found: {countries_dir}")

        templates: Dict[str, Dict[str, Any]] = {}
        # if 00-default.yaml defines DE and 01-germany.yaml does as well,
        # the later file wins
        for yaml_file in sorted(countries_dir.glob("*.yaml")):
            data = self._read_yaml(yaml_file)
            if data is None:
                continue
            if not isinstance(data, dict):
                self._reject(f"Expected a YAML mapping at top-level of {yaml_file}, got {type(data).__name__}")
                continue

            for key, entry in data.items():
                # anchors such as 'generic1: &generic1 |' are template snippets, not countries
                if not isinstance(entry, dict):
                    continue
                templates[str(key)] = entry
            logger.debug(f"Loaded country file {yaml_file.name}")

        return templates

    def _load_components(self) -> List[Dict[str, Any]]:
        path = self.conf_dir / "components.yaml"
        if not path.exists():
            logger.warning(f"Component file not found: {path}")
            return []

        docs = self._read_yaml(path, multi=True) or []
        components: List[Dict[str, Any]] = []
        for doc in docs:
            # accept both one-document-per-component and a single list
            if isinstance(doc, list):
                components.extend(d for d in doc if isinstance(d, dict))
            elif isinstance(doc, dict):
                components.append(doc)
            else:
                self._reject(f"Unexpected component definition in {path}: {doc!r}")
        return components

    def _load_optional_mapping(self, filename: str) -> Dict[str, Any]:
        path = self.conf_dir / filename
        if not path.exists():
            logger.debug(f"Optional rule file not found: {path}")
            return {}

        data = self._read_yaml(path)
        if data is None:
            return {}
        if not isinstance(data, dict):
            self._reject(f"Expected a YAML mapping in {path}")
            return {}
        return data

    def _load_abbreviations(self) -> Dict[str, Dict[str, Dict[str, str]]]:
        abbrv_dir = self.conf_dir / "abbreviations"
        if not abbrv_dir.exists():
            return {}

        tables: Dict[str, Dict[str, Dict[str, str]]] = {}
        for yaml_file in sorted(abbrv_dir.glob("*.yaml")):
            m = _LANG_FILE_RE.match(yaml_file.name)
            if not m:
                logger.debug(f"Skipping abbreviation file with no language code: {yaml_file.name}")
                continue
            data = self._read_yaml(yaml_file)
            if data is None:
                continue
            if not isinstance(data, dict):
                self._reject(f"Expected a YAML mapping in {yaml_file}")
                continue
            tables[m.group(1)] = data
        return tables

    def _load_territory_overrides(self) -> Optional[List[Dict[str, Any]]]:
        path = self.conf_dir / "territory_overrides.yaml"
        if not path.exists():
            return None

        data = self._read_yaml(path)
        if data is None:
            return None
        if not isinstance(data, list):
            self._reject(f"Expected a YAML list in {path}")
            return None
        return data

    def _reject(self, message: str) -> None:
        if self.strict:
            raise ConfigurationError(message)
        logger.error(message)

    def validate_all(self) -> Dict[str, List[str]]:
        """
        Check the loaded rules for problems that do not stop loading.

        Returns:
            Dictionary mapping country codes to a list of problems
        """
        store = self.load()
        errors: Dict[str, List[str]] = {}

        for code, rules in store.templates.items():
            problems = []
            if rules.use_country:
                target = store.templates.get(rules.use_country)
                if target is None:
                    problems.append(f"use_country '{rules.use_country}' has no entry")
                elif target.use_country:
                    problems.append(f"use_country '{rules.use_country}' is itself redirected")
            elif not rules.address_template:
                problems.append("Missing address_template")
            if problems:
                errors[code] = problems

        for warning in store.warnings:
            code = warning.source.split(".", 1)[0]
            errors.setdefault(code, []).append(str(warning))

        return errors
