"""
Core Utilities Package

Modules:
    - time: Timestamp conversion and normalization utilities
"""

from core.utils.time import parse_utc_datetime, to_utc_datetime, utc_now

__all__ = ["parse_utc_datetime", "to_utc_datetime", "utc_now"]
