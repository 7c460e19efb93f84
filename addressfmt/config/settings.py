"""
Formatter configuration.

Everything can be set from environment variables:
- ADDRESSFMT_CONF_DIR: rule directory (countries/, components.yaml, ...)
- ADDRESSFMT_STRICT: fail on broken rule files instead of skipping them
- ADDRESSFMT_REQUIRED_COMPONENTS / ADDRESSFMT_MINIMAL_THRESHOLD: fallback policy
- ADDRESSFMT_LOG_LEVEL
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple

DEFAULT_CONF_DIR = Path(__file__).parent.parent / "resources" / "conf"


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class FormatterConfig:
    """Configuration for rule loading and template selection."""

    conf_dir: Path = DEFAULT_CONF_DIR
    strict: bool = True

    # An address is "minimal" unless this many required components are missing
    required_components: Tuple[str, ...] = field(default=("road", "postcode"))
    minimal_threshold: int = 2

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "FormatterConfig":
        """Load config from environment variables."""
        required = os.getenv("ADDRESSFMT_REQUIRED_COMPONENTS", "road,postcode")

        return cls(
            conf_dir=Path(os.getenv("ADDRESSFMT_CONF_DIR", str(DEFAULT_CONF_DIR))),
            strict=_parse_bool(os.getenv("ADDRESSFMT_STRICT", "true")),
            required_components=tuple(c.strip() for c in required.split(",") if c.strip()),
            minimal_threshold=int(os.getenv("ADDRESSFMT_MINIMAL_THRESHOLD", "2")),
            log_level=os.getenv("ADDRESSFMT_LOG_LEVEL", "INFO").upper(),
        )
