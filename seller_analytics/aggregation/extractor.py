"""
Single-Store Metric Extractor

Boundary adapter between the loosely shaped dashboard API responses and
the engine's ``MetricSnapshot``. Defaulting rules:

- numeric fields missing or not numeric -> 0
- trend missing or unknown -> derived from current vs previous
- sparkline missing or not a list -> empty
- sparkline entries without a parseable ``tanggal`` -> dropped
"""

import math
from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Mapping, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from seller_analytics.core.models import MetricSnapshot, TimeSeriesPoint, TrendDirection

logger = structlog.get_logger(__name__)


def parse_calendar_date(value: Any) -> Optional[date]:
    """Parse an ISO ``YYYY-MM-DD`` value into a date, ``None`` if it is not one"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def coerce_number(value: Any) -> float:
    """Numeric value of ``value``, 0 for anything missing, non-numeric or non-finite"""
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float, Decimal)):
        try:
            number = float(value)
        except OverflowError:
            return 0.0
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    return number if math.isfinite(number) else 0.0


class RawSparklinePoint(BaseModel):
    """One ``{tanggal, total}`` entry of an upstream series"""

    model_config = ConfigDict(extra="ignore")

    tanggal: Optional[date] = None
    total: float = 0.0

    @field_validator("tanggal", mode="before")
    @classmethod
    def parse_tanggal(cls, v: Any) -> Optional[date]:
        return parse_calendar_date(v)

    @field_validator("total", mode="before")
    @classmethod
    def parse_total(cls, v: Any) -> float:
        return coerce_number(v)

    def to_point(self) -> Optional[TimeSeriesPoint]:
        if self.tanggal is None:
            return None
        return TimeSeriesPoint(date=self.tanggal, total=self.total)


def _sparkline_items(v: Any) -> List[Mapping[str, Any]]:
    if not isinstance(v, (list, tuple)):
        return []
    return [item for item in v if isinstance(item, Mapping)]


class RawMetricData(BaseModel):
    """The ``data`` object of a metric endpoint response"""

    model_config = ConfigDict(extra="ignore")

    total: float = 0.0
    previous_total: float = 0.0
    percent: float = 0.0
    trend: Optional[TrendDirection] = None
    sparkline: List[RawSparklinePoint] = Field(default_factory=list)

    @field_validator("total", "previous_total", "percent", mode="before")
    @classmethod
    def parse_number(cls, v: Any) -> float:
        return coerce_number(v)

    @field_validator("trend", mode="before")
    @classmethod
    def parse_trend(cls, v: Any) -> Optional[TrendDirection]:
        if isinstance(v, TrendDirection):
            return v
        if isinstance(v, str):
            for direction in TrendDirection:
                if direction.value.lower() == v.strip().lower():
                    return direction
        return None

    @field_validator("sparkline", mode="before")
    @classmethod
    def parse_sparkline(cls, v: Any) -> List[Mapping[str, Any]]:
        return _sparkline_items(v)


class RawMetricResponse(BaseModel):
    """Envelope of a metric endpoint response: ``{"data": {...}}``"""

    model_config = ConfigDict(extra="ignore")

    data: RawMetricData = Field(default_factory=RawMetricData)

    @field_validator("data", mode="before")
    @classmethod
    def parse_data(cls, v: Any) -> Mapping[str, Any]:
        return v if isinstance(v, Mapping) else {}


def _validate_response(raw: Any) -> RawMetricResponse:
    if not isinstance(raw, Mapping):
        return RawMetricResponse()
    try:
        return RawMetricResponse.model_validate(raw)
    except ValidationError as e:
        logger.warning("Malformed metric response, using defaults", errors=e.error_count())
        return RawMetricResponse()


def extract_metric(raw: Any) -> MetricSnapshot:
    """
    Normalize one store's raw metric response into a ``MetricSnapshot``.

    Never raises: a malformed response degrades to zero values.
    """
    data = _validate_response(raw).data

    trend = data.trend or TrendDirection.from_values(data.total, data.previous_total)
    points = [p for p in (item.to_point() for item in data.sparkline) if p is not None]
    dropped = len(data.sparkline) - len(points)
    if dropped:
        logger.debug("Dropped sparkline entries without a valid date", dropped=dropped)

    return MetricSnapshot(
        current=data.total,
        previous=data.previous_total,
        percent_change=data.percent,
        trend_direction=trend,
        sparkline=tuple(sorted(points, key=lambda p: p.date)),
    )


def extract_series(raw_points: Any) -> List[TimeSeriesPoint]:
    """Normalize a bare ``[{tanggal, total}]`` daily series"""
    points = []
    for item in _sparkline_items(raw_points):
        point = RawSparklinePoint.model_validate(item).to_point()
        if point is not None:
            points.append(point)
    return sorted(points, key=lambda p: p.date)
