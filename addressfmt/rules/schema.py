"""
Pydantic schema for address formatting rule files.

Ensures rule files are well-formed and fail fast on configuration errors.
Regex rules are NOT validated here: a broken replacement pattern only
disables that one rule (see store.compile_rules).
"""

import re
from typing import List, Optional

import pystache
from pydantic import BaseModel, Field, field_validator
from pystache.parser import ParsingError


def _ensure_rule_list(v) -> List[List[str]]:
    """Normalize a replace list to [[pattern, replacement], ...] of strings."""
    if v is None:
        return []
    if not isinstance(v, list):
        raise ValueError("Replacement rules must be a list of [pattern, replacement] pairs")

    rules = []
    for item in v:
        if not isinstance(item, (list, tuple)) or len(item) != 2:
            raise ValueError(f"Replacement rule must have exactly two entries, got {item!r}")
        pattern, replacement = item
        if pattern is None:
            raise ValueError("Replacement rule pattern cannot be empty")
        rules.append([str(pattern), "" if replacement is None else str(replacement)])
    return rules


class CountryTemplateModel(BaseModel):
    """One country (or 'default') entry of a countries/*.yaml file."""
    address_template: Optional[str] = Field(default=None, description="Mustache template")
    fallback_template: Optional[str] = Field(default=None, description="Template used for sparse input")
    replace: List[List[str]] = Field(default_factory=list, description="Pre-render [pattern, replacement] rules")
    postformat_replace: List[List[str]] = Field(default_factory=list, description="Post-render rules")
    use_country: Optional[str] = Field(default=None, description="Borrow another country's rules")
    change_country: Optional[str] = Field(default=None, description="New 'country' value, may contain $component")
    add_component: Optional[str] = Field(default=None, description="key=value added for dependent territories")

    model_config = {
        "extra": "ignore",
        "frozen": True,
    }

    @field_validator("address_template", "fallback_template")
    @classmethod
    def validate_template(cls, v):
        """Templates must parse as Mustache."""
        if v is None:
            return v
        try:
            pystache.parse(v)
        except ParsingError as e:
            raise ValueError(f"Invalid template: {e}")
        return v

    @field_validator("replace", "postformat_replace", mode="before")
    @classmethod
    def validate_rules(cls, v):
        return _ensure_rule_list(v)

    @field_validator("use_country")
    @classmethod
    def validate_use_country(cls, v):
        if v is None:
            return v
        if not re.match(r"^[A-Za-z]{2}$", v):
            raise ValueError(f"Invalid use_country '{v}'. Expected a two letter country code")
        return v.upper()

    @field_validator("add_component")
    @classmethod
    def validate_add_component(cls, v):
        if v is None:
            return v
        if "=" not in v:
            raise ValueError(f"Invalid add_component '{v}'. Expected 'key=value'")
        return v


class ComponentModel(BaseModel):
    """A canonical component from components.yaml."""
    name: str
    aliases: List[str] = Field(default_factory=list)

    model_config = {"extra": "ignore"}

    @field_validator("aliases", mode="before")
    @classmethod
    def ensure_list_of_strings(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        if isinstance(v, list):
            return [str(item) for item in v]
        raise ValueError("Aliases must be strings or lists of strings")


class TerritoryOverrideModel(BaseModel):
    """Entry of territory_overrides.yaml."""
    country: str = Field(..., description="Resolved country code the override applies to")
    component: str = Field(default="state")
    pattern: str = Field(..., description="Case-insensitive regex matched against the component")
    code: str = Field(..., description="Country code to switch to")
    country_name: str = Field(..., description="Value written to the 'country' component")

    model_config = {"extra": "forbid"}

    @field_validator("country", "code")
    @classmethod
    def validate_code(cls, v):
        if not re.match(r"^[A-Za-z]{2}$", v):
            raise ValueError(f"Invalid country code '{v}'")
        return v.upper()

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v):
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid regex pattern '{v}': {e}")
        return v
