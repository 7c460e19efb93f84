"""
addressfmt: format structured postal addresses according to the
conventions of the address's country.
"""

from addressfmt.errors import AddressFormatterError, ConfigurationError, RuleWarning
from addressfmt.formatter import AddressFormatter, FormatTrace
from addressfmt.rules import RuleStore, RuleStoreLoader

__version__ = "0.1.0"

__all__ = [
    "AddressFormatter",
    "FormatTrace",
    "RuleStore",
    "RuleStoreLoader",
    "AddressFormatterError",
    "ConfigurationError",
    "RuleWarning",
]
