"""
aggregation/__init__.py

Public API for the aggregation sub-package.
"""

from .hourly import HOURS_PER_DAY, get_hourly_totals, hour_windows, parse_query_date

__all__ = [
    "HOURS_PER_DAY",
    "get_hourly_totals",
    "hour_windows",
    "parse_query_date",
]
