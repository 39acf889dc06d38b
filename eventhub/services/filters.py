from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List
from urllib.parse import parse_qsl, urlencode

from ..models import Event

# Query parameter name -> attribute name.
QUERY_KEYS = {
    "search": "search",
    "category": "category",
    "priceRange": "price_range",
    "location": "location",
    "dateRange": "date_range",
}

PRICE_RANGES: Dict[str, Callable[[float], bool]] = {
    "free": lambda price: price == 0,
    "under-50": lambda price: 0 < price < 50,
    "50-100": lambda price: 50 <= price <= 100,
    "100-200": lambda price: 100 < price <= 200,
    "over-200": lambda price: price > 200,
}


@dataclass(frozen=True)
class EventFilters:
    search: str = ""
    category: str = ""
    price_range: str = ""
    location: str = ""
    date_range: str = ""

    @classmethod
    def from_query(cls, query: str) -> "EventFilters":
        """Parse ``search=yoga&priceRange=under-50``; bare text is a search."""
        query = (query or "").strip().lstrip("?")
        if query and "=" not in query:
            return cls(search=query)
        values = {}
        for key, value in parse_qsl(query, keep_blank_values=True):
            attr = QUERY_KEYS.get(key)
            if attr:
                values[attr] = value.strip()
        return cls(**values)

    def to_query(self) -> str:
        return urlencode([(key, getattr(self, attr)) for key, attr in QUERY_KEYS.items() if getattr(self, attr)])

    @property
    def is_empty(self) -> bool:
        return not self.to_query()


def filter_events(events: Iterable[Event], filters: EventFilters) -> List[Event]:
    """Apply listing filters. ``date_range`` is kept for the query but not applied."""
    result = list(events)
    if filters.search:
        needle = filters.search.lower()
        result = [e for e in result if needle in e.name.lower() or needle in e.description.lower()]
    if filters.category:
        result = [e for e in result if e.category == filters.category]
    price_check = PRICE_RANGES.get(filters.price_range)
    if price_check is not None:
        result = [e for e in result if price_check(e.base_price)]
    if filters.location:
        result = [e for e in result if filters.location in e.location]
    return result
