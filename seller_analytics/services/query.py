"""
Dashboard Query Parameters

Explicit store/date selection threaded into every dashboard call, and the
adapters that turn it into per-store upstream payloads.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

ALL_STORES = "all"


@dataclass(frozen=True)
class StoreRef:
    """Store metadata needed to address the dashboard API"""
    id: Union[int, str]
    marketplace_id: Optional[int] = None
    name: Optional[str] = None


def target_stores(selection: Union[int, str], stores: Sequence[StoreRef]) -> List[StoreRef]:
    """
    Stores addressed by a selection.

    ``"all"`` selects every store with an id; any other value selects the
    store whose id matches it, or nothing.
    """
    if str(selection) == ALL_STORES:
        return [s for s in stores if s.id not in (None, "")]
    return [s for s in stores if str(s.id) == str(selection)][:1]


def format_date_range(start: Optional[date], end: Optional[date]) -> Dict[str, str]:
    """ISO ``date_from``/``date_to`` strings; empty strings for missing bounds"""
    return {
        "date_from": start.isoformat() if start else "",
        "date_to": end.isoformat() if end else "",
    }


def build_payload(
    store: StoreRef,
    date_from: date,
    date_to: date,
    default_marketplace_id: int = 1,
) -> Dict[str, Any]:
    """Request body for one store's metric endpoints"""
    return {
        "store_id": int(store.id),
        "marketplace_id": store.marketplace_id or default_marketplace_id,
        **format_date_range(date_from, date_to),
    }


def previous_period_label(start: date) -> str:
    """``"Mon YYYY"`` of the month before the one ``start`` falls in"""
    if start.month == 1:
        previous = date(start.year - 1, 12, 1)
    else:
        previous = date(start.year, start.month - 1, 1)
    return previous.strftime("%b %Y")


@dataclass(frozen=True)
class DashboardQuery:
    """
    One dashboard request: which stores and which date range.

    Example:
        query = DashboardQuery(
            store_selection="all",
            stores=(StoreRef(1, 1), StoreRef(2, 2)),
            date_from=date(2024, 1, 1),
            date_to=date(2024, 1, 31),
        )
    """
    store_selection: Union[int, str]
    date_from: date
    date_to: date
    stores: Tuple[StoreRef, ...] = field(default_factory=tuple)

    @property
    def targets(self) -> List[StoreRef]:
        return target_stores(self.store_selection, self.stores)

    @property
    def is_valid_range(self) -> bool:
        return self.date_from <= self.date_to

    def cache_key(self, scope: str) -> str:
        """Memoization key for ``scope`` results of this query"""
        store_ids = ",".join(sorted(str(s.id) for s in self.targets))
        return f"{scope}:{store_ids}:{self.date_from.isoformat()}:{self.date_to.isoformat()}"
