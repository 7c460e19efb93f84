"""
Telemetry package.

Lightweight observability for the address formatter.
"""

from .format_metrics import FormatMetrics

__all__ = ["FormatMetrics"]
