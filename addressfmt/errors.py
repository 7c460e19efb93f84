"""
Error types for the address formatter.

Only configuration problems are raised. Everything that can go wrong while
formatting a single record (missing components, odd country codes) is
absorbed by the pipeline.
"""

from dataclasses import dataclass


class AddressFormatterError(Exception):
    """Base class for all formatter errors."""


class ConfigurationError(AddressFormatterError):
    """Rule set is missing or unusable (e.g. no default template)."""


@dataclass(frozen=True)
class RuleWarning:
    """A replacement rule that was skipped because it could not be compiled."""
    source: str
    pattern: str
    error: str

    def __str__(self) -> str:
        return f"{self.source}: invalid pattern '{self.pattern}' ({self.error})"
