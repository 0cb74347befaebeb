"""
Error Taxonomy

Aggregation itself degrades to empty or zero-valued results; these errors
cover precondition violations and the upstream HTTP boundary.
"""

from datetime import date
from typing import Optional


class SellerAnalyticsError(Exception):
    """Base error for the package"""


class SeriesOutOfRangeError(SellerAnalyticsError, ValueError):
    """A series handed to a range-bound aggregator holds dates outside the range"""

    def __init__(self, point_date: date, range_start: date, range_end: date):
        self.point_date = point_date
        self.range_start = range_start
        self.range_end = range_end
        super().__init__(
            f"Series point {point_date.isoformat()} lies outside "
            f"{range_start.isoformat()}..{range_end.isoformat()}; clip the series first"
        )


class UpstreamError(SellerAnalyticsError):
    """The dashboard API could not be reached or answered with an error"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
