"""
Telemetry for address formatting.

Lightweight in-process counters: how often each country is formatted, how
often the fallback template is needed, how many records carry no usable
country code.

Usage:
    from addressfmt.telemetry import FormatMetrics

    metrics = FormatMetrics()
    formatter = AddressFormatter(metrics=metrics)
    ...
    summary = metrics.get_summary()
"""

import json
import logging
import threading
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, Optional


logger = logging.getLogger(__name__)


class FormatMetrics:
    """Counters for format calls. Safe to share between threads."""

    def __init__(self):
        """Initialize metrics collector."""
        self.counters = defaultdict(int)
        self.countries = defaultdict(int)
        self.start_time = datetime.now(timezone.utc)
        self.call_count = 0
        self._lock = threading.Lock()

    def record_format(self, country_code: Optional[str], template: str, abbreviated: bool) -> None:
        """
        Record one format call.

        Args:
            country_code: Resolved country code (None when it could not be determined)
            template: 'primary' or 'fallback'
            abbreviated: Whether abbreviations were applied
        """
        with self._lock:
            self.call_count += 1
            self.counters[f"template.{template}"] += 1
            if country_code is None:
                self.counters["country.none"] += 1
            else:
                self.countries[country_code] += 1
            if abbreviated:
                self.counters["abbreviated"] += 1

    def get_summary(self) -> Dict[str, Any]:
        """
        Get metrics summary.

        Returns:
            Dict with counters, percentages and per-country counts
        """
        with self._lock:
            counters = dict(self.counters)
            countries = dict(self.countries)
            call_count = self.call_count

        if call_count == 0:
            return {"error": "No addresses formatted"}

        percentages = {
            key: {"count": count, "percentage": round(100 * count / call_count, 2)}
            for key, count in counters.items()
        }

        return {
            "metadata": {
                "start_time": self.start_time.isoformat(),
                "end_time": datetime.now(timezone.utc).isoformat(),
                "call_count": call_count,
            },
            "counters": percentages,
            "countries": dict(sorted(countries.items())),
        }

    def log_summary(self, level: int = logging.INFO) -> None:
        """
        Log metrics summary as JSON.

        Args:
            level: Logging level (default: INFO)
        """
        summary = self.get_summary()
        logger.log(level, f"Format Metrics Summary: {json.dumps(summary, indent=2)}")

    def reset(self) -> None:
        with self._lock:
            self.counters.clear()
            self.countries.clear()
            self.call_count = 0
            self.start_time = datetime.now(timezone.utc)
