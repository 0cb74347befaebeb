"""
Seller Analytics Aggregation Engine

Turns per-store marketplace dashboard responses into zero-filled calendar
buckets, growth series, reconciled multi-store metrics and day-of-week
operational views.
"""

__version__ = "1.0.0"
