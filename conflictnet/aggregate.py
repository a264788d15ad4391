"""
Aggregations (monthly buckets, category summaries)
==================================================

Every aggregation here follows the same two-pass shape:

1) walk the events once, updating a dict of key -> accumulator
2) turn the dict into a sorted list of immutable summary rows

The input is never modified; each function returns a new list.
"""

from __future__ import annotations
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from .models import CategorySummary, Event, EventTypeSummary, MonthlyBucket

# Event fields that make sense as a grouping key for category_summary.
CATEGORY_FIELDS = ("event_type", "sub_event_type", "admin1", "admin2", "location")


def monthly_fatalities(events: Iterable[Event]) -> List[MonthlyBucket]:
    """Sum fatalities per calendar month, oldest month first.

    Months without events are not filled in.
    """
    totals: Dict[date, int] = {}
    for e in events:
        key = e.month()
        totals[key] = totals.get(key, 0) + e.fatalities
    return [MonthlyBucket(month=m, total_fatalities=totals[m]) for m in sorted(totals)]


def _summary_rows(acc: Dict[str, List[int]]) -> List[CategorySummary]:
    """Materialize key -> [fatalities, count], biggest total first.

    Ties are broken by the key so output is reproducible.
    """
    rows = [CategorySummary(category=k, total_fatalities=v[0], event_count=v[1]) for k, v in acc.items()]
    rows.sort(key=lambda r: (-r.total_fatalities, r.category))
    return rows


def category_summary(events: Iterable[Event], field: str = "event_type") -> List[CategorySummary]:
    """Group by a string field: total fatalities and event count per value.

    Values are compared exactly (case-sensitive, no normalization) and every
    value present appears once, even with zero fatalities.
    """
    if field not in CATEGORY_FIELDS:
        raise ValueError(f"field must be one of {CATEGORY_FIELDS}, got {field!r}")
    acc: Dict[str, List[int]] = {}
    for e in events:
        slot = acc.setdefault(getattr(e, field), [0, 0])
        slot[0] += e.fatalities
        slot[1] += 1
    return _summary_rows(acc)


def event_type_summary(events: Iterable[Event]) -> List[EventTypeSummary]:
    return category_summary(events, "event_type")


def actor_summary(events: Iterable[Event]) -> List[CategorySummary]:
    """Involvement of each actor, whether listed as actor1 or actor2.

    An event where both sides are the same actor is counted once for it.
    Empty actor names are ignored.
    """
    acc: Dict[str, List[int]] = {}
    for e in events:
        for actor in {e.actor1.strip(), e.actor2.strip()}:
            if not actor:
                continue
            slot = acc.setdefault(actor, [0, 0])
            slot[0] += e.fatalities
            slot[1] += 1
    return _summary_rows(acc)


def filter_date_range(events: Sequence[Event], start: Optional[date] = None,
                      end: Optional[date] = None) -> List[Event]:
    """Keep events with start <= event_date <= end (either bound optional)."""
    return [
        e for e in events
        if (start is None or e.event_date >= start) and (end is None or e.event_date <= end)
    ]
